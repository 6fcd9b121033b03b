"""Trigger engine facade.

Wires the host collaborators (job registry, build scheduler, branch metadata)
to the reconciler, dispatcher, propagator and lifecycle listener.
"""

from __future__ import annotations

import logging

from multibranch_action_triggers.config import TriggerSettings
from multibranch_action_triggers.host.declaration_store import DeclarationStore
from multibranch_action_triggers.host.github import GitHubBranchMetadataProvider
from multibranch_action_triggers.host.memory import (
    InMemoryJobRegistry,
    RecordingBuildScheduler,
    StaticBranchMetadataProvider,
)
from multibranch_action_triggers.host.model import (
    BranchMetadataProvider,
    BuildScheduler,
    Container,
    JobRegistry,
)
from multibranch_action_triggers.triggers.dispatcher import TriggerDispatcher
from multibranch_action_triggers.triggers.inheritance import PropertyPropagator
from multibranch_action_triggers.triggers.listeners import TriggerListener
from multibranch_action_triggers.triggers.parameters import ParameterReconciler
from multibranch_action_triggers.triggers.property import (
    TriggerConfig,
    TriggerProperty,
    load_trigger_config,
)

logger = logging.getLogger(__name__)


class TriggerEngine:
    """Everything needed to react to branch lifecycle events.

    Collaborators that are not passed in default to the in-memory host.
    """

    def __init__(
        self,
        *,
        registry: JobRegistry | None = None,
        scheduler: BuildScheduler | None = None,
        metadata_provider: BranchMetadataProvider | None = None,
    ) -> None:
        self.registry: JobRegistry = registry or InMemoryJobRegistry()
        self.scheduler: BuildScheduler = scheduler or RecordingBuildScheduler()
        self.metadata_provider: BranchMetadataProvider = (
            metadata_provider or StaticBranchMetadataProvider()
        )

        self.reconciler = ParameterReconciler()
        self.dispatcher = TriggerDispatcher(
            scheduler=self.scheduler, metadata_provider=self.metadata_provider
        )
        self.propagator = PropertyPropagator()
        self.listener = TriggerListener(self.dispatcher, self.propagator)

        if isinstance(self.registry, InMemoryJobRegistry):
            self.registry.subscribe(self.listener)

        logger.info("Trigger engine initialized")

    @classmethod
    def from_settings(cls, settings: TriggerSettings) -> TriggerEngine:
        registry = InMemoryJobRegistry(store=DeclarationStore(settings.declarations_state_file))
        metadata: BranchMetadataProvider
        if settings.github_enabled:
            metadata = GitHubBranchMetadataProvider(
                token=settings.github_token,
                repository=settings.github_repository,
                base_url=settings.github_base_url,
                change_request_prefix=settings.change_request_prefix,
            )
        else:
            metadata = StaticBranchMetadataProvider()
        return cls(registry=registry, metadata_provider=metadata)

    def create_property(self, config: TriggerConfig | None = None) -> TriggerProperty:
        return TriggerProperty.from_config(
            config or TriggerConfig(), self.registry, reconciler=self.reconciler
        )

    def load_property(self, settings: TriggerSettings) -> TriggerProperty:
        return self.create_property(load_trigger_config(settings.trigger_config_path))

    def attach(self, container: Container, prop: TriggerProperty) -> None:
        """Attach ``prop`` to ``container`` and push it to eligible children."""

        if not TriggerProperty.is_applicable(container):
            raise ValueError(
                f"Trigger property is not applicable to {container.kind.value}: "
                f"{container.full_name}"
            )
        container.trigger_property = prop
        self.listener.on_property_updated(container)
