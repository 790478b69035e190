"""Exception hierarchy for the process repository."""

from __future__ import annotations


class ProcessRepositoryError(Exception):
    """Base class for all repository errors."""


class DeploymentCompilationError(ProcessRepositoryError):
    """Raised when a deployment resource cannot be compiled into definitions."""

    def __init__(self, resource_name: str, message: str) -> None:
        self.resource_name = resource_name
        super().__init__(f"Resource '{resource_name}': {message}")


class ManifestError(ProcessRepositoryError):
    """Raised when a release manifest is unsafe, unparseable or incomplete."""


class DeploymentNotFoundError(ProcessRepositoryError, KeyError):
    """Raised when a deployment ID is unknown."""

    def __init__(self, deployment_id: str) -> None:
        self.deployment_id = deployment_id
        super().__init__(f"Deployment '{deployment_id}' not found")

    def __str__(self) -> str:
        return str(self.args[0])


class ProcessDefinitionNotFoundError(ProcessRepositoryError, KeyError):
    """Raised when a process definition ID is unknown."""

    def __init__(self, definition_id: str) -> None:
        self.definition_id = definition_id
        super().__init__(f"Process definition '{definition_id}' not found")

    def __str__(self) -> str:
        return str(self.args[0])


class SuspensionStateError(ProcessRepositoryError):
    """Raised when a definition is already in the requested suspension state."""


class StorageError(ProcessRepositoryError):
    """Raised when a storage invariant is violated."""
