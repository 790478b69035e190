"""Release manifest attached to a deployment bundle."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class ReleaseManifest(BaseModel):
    """Project release metadata.

    ``version`` is the semantic release of the bundle; it is independent of
    the deployment's internal version counter.
    """

    id: str | None = None
    name: str | None = None
    version: str
    description: str | None = None
    created_by: str | None = Field(None, alias="createdBy")
    creation_date: datetime | None = Field(None, alias="creationDate")
    last_modified_by: str | None = Field(None, alias="lastModifiedBy")
    last_modified_date: datetime | None = Field(None, alias="lastModifiedDate")

    model_config = {"populate_by_name": True}
