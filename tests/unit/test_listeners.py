"""Unit tests for the lifecycle listener."""

from __future__ import annotations

from unittest.mock import Mock

from multibranch_action_triggers.engine import TriggerEngine
from multibranch_action_triggers.host.memory import (
    Folder,
    InMemoryJobRegistry,
    Job,
    RecordingBuildScheduler,
)
from multibranch_action_triggers.triggers.dispatcher import TriggerDispatcher
from multibranch_action_triggers.triggers.events import TriggerKind
from multibranch_action_triggers.triggers.inheritance import PropertyPropagator
from multibranch_action_triggers.triggers.listeners import TriggerListener
from multibranch_action_triggers.triggers.parameters import RUN_DISPLAY_NAME_KEY, RUN_NUMBER_KEY
from multibranch_action_triggers.triggers.property import TriggerConfig


def _attach_all(engine: TriggerEngine, project: Folder) -> None:
    engine.attach(
        project,
        engine.create_property(
            TriggerConfig(
                create_jobs_to_trigger="ops/on-create",
                delete_jobs_to_trigger="ops/on-delete",
                run_delete_jobs_to_trigger="ops/on-run-delete",
            )
        ),
    )


def test_deleting_a_job_fires_run_delete_for_each_remaining_run(
    engine: TriggerEngine,
    registry: InMemoryJobRegistry,
    scheduler: RecordingBuildScheduler,
    downstream: dict[str, Job],
    branch_project: Folder,
) -> None:
    _attach_all(engine, branch_project)
    job = registry.create_job("feature-y", parent=branch_project)
    job.add_run()
    job.add_run("nightly")

    outcomes = engine.listener.on_deleted(job)

    assert [o.kind for o in outcomes] == [
        TriggerKind.DELETE,
        TriggerKind.RUN_DELETE,
        TriggerKind.RUN_DELETE,
    ]
    assert len(scheduler.builds_for("ops/on-delete")) == 1
    run_builds = scheduler.builds_for("ops/on-run-delete")
    assert [b.parameter_map[RUN_NUMBER_KEY] for b in run_builds] == ["1", "2"]
    assert [b.parameter_map[RUN_DISPLAY_NAME_KEY] for b in run_builds] == ["#1", "nightly"]


def test_registry_callbacks_reach_the_listener(
    engine: TriggerEngine,
    registry: InMemoryJobRegistry,
    scheduler: RecordingBuildScheduler,
    downstream: dict[str, Job],
    branch_project: Folder,
) -> None:
    _attach_all(engine, branch_project)
    job = registry.create_job("main", parent=branch_project)
    run = job.add_run()

    registry.delete_run(job, run.number)
    registry.delete_job(job)

    assert len(scheduler.builds_for("ops/on-create")) == 1
    assert len(scheduler.builds_for("ops/on-run-delete")) == 1
    assert len(scheduler.builds_for("ops/on-delete")) == 1


def test_deleting_unknown_run_fires_nothing(
    engine: TriggerEngine,
    registry: InMemoryJobRegistry,
    scheduler: RecordingBuildScheduler,
    downstream: dict[str, Job],
    branch_project: Folder,
) -> None:
    _attach_all(engine, branch_project)
    job = registry.create_job("main", parent=branch_project)

    assert registry.delete_run(job, 99) is None
    assert scheduler.builds_for("ops/on-run-delete") == []


def test_handlers_never_raise() -> None:
    dispatcher = Mock(spec=TriggerDispatcher)
    dispatcher.dispatch.side_effect = RuntimeError("boom")
    propagator = Mock(spec=PropertyPropagator)
    propagator.on_container_created.side_effect = RuntimeError("boom")
    propagator.on_property_updated.side_effect = RuntimeError("boom")
    listener = TriggerListener(dispatcher, propagator)

    job = Mock()
    job.full_name = "app/main"
    job.runs = []
    container = Mock()
    container.full_name = "org"

    assert listener.on_created(job) is None
    assert listener.on_deleted(job) == []
    assert listener.on_run_deleted(job, Mock(number=1, display_name="#1")) is None
    listener.on_container_created(container)
    listener.on_property_updated(container)
