"""Deferred activation of freshly deployed process definitions."""

from __future__ import annotations

import logging
from datetime import datetime

from processrepo.models.deployment import Deployment, ProcessDefinition
from processrepo.service.commands import (
    ActivateProcessDefinition,
    CommandChannel,
    SuspendProcessDefinition,
)

logger = logging.getLogger("processrepo.admission")


class ActivationScheduler:
    """Suspends each new definition, then schedules its activation."""

    def __init__(self, commands: CommandChannel) -> None:
        self._commands = commands

    def schedule(self, deployment: Deployment, activation_date: datetime) -> None:
        definitions = deployment.deployed_artifacts(ProcessDefinition)
        for definition in definitions:
            # Suspend first so the definition is never usable before the date.
            self._commands.execute(
                SuspendProcessDefinition(
                    process_definition_id=definition.id,
                    tenant_id=deployment.tenant_id,
                )
            )
            self._commands.execute(
                ActivateProcessDefinition(
                    process_definition_id=definition.id,
                    tenant_id=deployment.tenant_id,
                    effective_date=activation_date,
                )
            )
        logger.info(
            "Deployment %s: %d definition(s) suspended until %s",
            deployment.id, len(definitions), activation_date.isoformat(),
        )
