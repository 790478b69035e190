"""Deployment admission: duplicate check, versioning, persistence, compilation."""

from __future__ import annotations

import logging

from processrepo.admission.activation import ActivationScheduler
from processrepo.admission.duplicates import Comparison, DuplicateResolver
from processrepo.admission.request import DeploymentRequest
from processrepo.admission.versioning import INITIAL_VERSION, VersionAssigner
from processrepo.models.deployment import Deployment
from processrepo.service.clock import Clock
from processrepo.service.deployer import (
    BPMN20_XSD_VALIDATION_ENABLED,
    PROCESS_VALIDATION_ENABLED,
    DeploymentManager,
    DeploymentSettings,
)
from processrepo.service.events import EventDispatcher, EventKind
from processrepo.storage.repository import DeploymentRepository

logger = logging.getLogger("processrepo.admission")


class AdmissionController:
    """Admits one deployment request.

    Runs inside the caller's storage transaction and takes no locks of its
    own. Any collaborator failure propagates unchanged; undoing the insert is
    left to the enclosing transaction.
    """

    def __init__(
        self,
        clock: Clock,
        deployments: DeploymentRepository,
        events: EventDispatcher,
        deployment_manager: DeploymentManager,
        activation: ActivationScheduler,
        resolver: DuplicateResolver | None = None,
        assigner: VersionAssigner | None = None,
    ) -> None:
        self._clock = clock
        self._deployments = deployments
        self._events = events
        self._deployment_manager = deployment_manager
        self._activation = activation
        self._resolver = resolver or DuplicateResolver(deployments)
        self._assigner = assigner or VersionAssigner()

    def admit(self, request: DeploymentRequest) -> Deployment:
        deployment = request.deployment
        deployment.deployment_time = self._clock.now()
        if request.project_manifest is not None:
            deployment.project_release_version = request.project_manifest.version
        deployment.version = INITIAL_VERSION

        if request.duplicate_filter_enabled:
            existing = self._resolver.find_existing(deployment)
            if existing is not None:
                comparison = self._resolver.resolve(request, existing)
                if comparison is Comparison.IDENTICAL:
                    logger.info(
                        "Deployment '%s' (tenant '%s') matches %s; nothing deployed",
                        deployment.name, deployment.tenant_id, existing.id,
                    )
                    return existing
                self._assigner.assign(request, existing, comparison)

        deployment.is_new = True
        self._deployments.insert(deployment)
        logger.info(
            "Admitted deployment %s '%s' (tenant '%s') as version %d",
            deployment.id, deployment.name, deployment.tenant_id, deployment.version,
        )

        if self._events.is_enabled():
            self._events.dispatch(EventKind.ENTITY_CREATED, deployment)

        settings: DeploymentSettings = {
            BPMN20_XSD_VALIDATION_ENABLED: request.bpmn20_xsd_validation_enabled,
            PROCESS_VALIDATION_ENABLED: request.process_validation_enabled,
        }
        self._deployment_manager.deploy(deployment, settings)

        if request.process_definitions_activation_date is not None:
            self._activation.schedule(deployment, request.process_definitions_activation_date)

        if self._events.is_enabled():
            self._events.dispatch(EventKind.ENTITY_INITIALIZED, deployment)

        return deployment
