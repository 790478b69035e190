"""Dependency injection for FastAPI: the RepositoryService singleton."""

from __future__ import annotations

from processrepo.service.repository import RepositoryService

_repository_service: RepositoryService | None = None


def init_repository_service(service: RepositoryService) -> None:
    """Set the global RepositoryService (called at app startup)."""
    global _repository_service  # noqa: PLW0603
    _repository_service = service


def get_repository_service() -> RepositoryService:
    """FastAPI ``Depends`` provider for RepositoryService."""
    if _repository_service is None:
        raise RuntimeError(
            "RepositoryService not initialised; call init_repository_service() first"
        )
    return _repository_service


def reset_repository_service() -> None:
    """Clear the global RepositoryService (for tests)."""
    global _repository_service  # noqa: PLW0603
    _repository_service = None
