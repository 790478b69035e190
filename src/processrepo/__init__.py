"""Process-definition repository with deployment admission."""

__version__ = "0.1.0"
