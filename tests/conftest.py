"""Test configuration and fixtures."""

from __future__ import annotations

import pytest

from multibranch_action_triggers.engine import TriggerEngine
from multibranch_action_triggers.host.memory import (
    Folder,
    InMemoryJobRegistry,
    Job,
    RecordingBuildScheduler,
    StaticBranchMetadataProvider,
)


@pytest.fixture
def registry() -> InMemoryJobRegistry:
    """Provide an empty in-memory job registry."""
    return InMemoryJobRegistry()


@pytest.fixture
def scheduler() -> RecordingBuildScheduler:
    """Provide a scheduler that records builds instead of running them."""
    return RecordingBuildScheduler()


@pytest.fixture
def metadata() -> StaticBranchMetadataProvider:
    """Provide branch metadata with plain-branch fallback."""
    return StaticBranchMetadataProvider()


@pytest.fixture
def engine(
    registry: InMemoryJobRegistry,
    scheduler: RecordingBuildScheduler,
    metadata: StaticBranchMetadataProvider,
) -> TriggerEngine:
    """Provide an engine subscribed to the registry's lifecycle callbacks."""
    return TriggerEngine(registry=registry, scheduler=scheduler, metadata_provider=metadata)


@pytest.fixture
def downstream(registry: InMemoryJobRegistry) -> dict[str, Job]:
    """Provide three downstream jobs in a plain folder."""
    folder = registry.create_folder("ops")
    return {
        "create": registry.create_job("on-create", parent=folder),
        "delete": registry.create_job("on-delete", parent=folder),
        "run_delete": registry.create_job("on-run-delete", parent=folder),
    }


@pytest.fixture
def branch_project(registry: InMemoryJobRegistry) -> Folder:
    """Provide a branch-indexed project without a trigger property."""
    return registry.create_branch_project("app")
