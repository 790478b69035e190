"""Timer jobs recorded by deferred administrative commands."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, field_validator

from processrepo.models.deployment import NO_TENANT_ID


class JobKind(StrEnum):
    ACTIVATE_PROCESS_DEFINITION = "activate-process-definition"
    SUSPEND_PROCESS_DEFINITION = "suspend-process-definition"


class TimerJob(BaseModel):
    """A suspension state change waiting for its due date."""

    id: str | None = None
    kind: JobKind
    process_definition_id: str
    tenant_id: str = NO_TENANT_ID
    due_date: datetime

    @field_validator("due_date")
    @classmethod
    def _due_date_is_aware(cls, value: datetime) -> datetime:
        # Due dates are compared with the UTC clock; naive values are UTC.
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
