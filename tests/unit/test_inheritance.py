"""Unit tests for organization property propagation."""

from __future__ import annotations

from multibranch_action_triggers.engine import TriggerEngine
from multibranch_action_triggers.host.memory import (
    InMemoryJobRegistry,
    Job,
    RecordingBuildScheduler,
)
from multibranch_action_triggers.triggers.inheritance import PropertyPropagator
from multibranch_action_triggers.triggers.parameters import RUN_NUMBER_KEY, SOURCE_BRANCH_NAME_KEY
from multibranch_action_triggers.triggers.property import TriggerConfig, TriggerProperty


def test_new_branch_project_inherits_organization_property(
    engine: TriggerEngine, registry: InMemoryJobRegistry, downstream: dict[str, Job]
) -> None:
    org = registry.create_organization("acme")
    prop = engine.create_property(TriggerConfig(create_jobs_to_trigger="ops/on-create"))
    engine.attach(org, prop)

    project = registry.create_branch_project("service", parent=org)

    assert project.trigger_property is prop


def test_inherited_property_triggers_builds(
    engine: TriggerEngine,
    registry: InMemoryJobRegistry,
    scheduler: RecordingBuildScheduler,
    downstream: dict[str, Job],
) -> None:
    org = registry.create_organization("acme")
    engine.attach(
        org, engine.create_property(TriggerConfig(create_jobs_to_trigger="ops/on-create"))
    )
    project = registry.create_branch_project("service", parent=org)

    registry.create_job("main", parent=project)

    [build] = scheduler.builds_for("ops/on-create")
    assert build.parameter_map[SOURCE_BRANCH_NAME_KEY] == "main"


def test_child_with_own_property_keeps_it_on_creation(registry: InMemoryJobRegistry) -> None:
    org = registry.create_organization("acme")
    org.trigger_property = TriggerProperty(registry)
    project = registry.create_branch_project("service", parent=org)
    own = TriggerProperty(registry)
    project.trigger_property = own

    assert PropertyPropagator().on_container_created(project) is None
    assert project.trigger_property is own


def test_property_update_is_pushed_to_every_eligible_child(
    engine: TriggerEngine, registry: InMemoryJobRegistry, downstream: dict[str, Job]
) -> None:
    org = registry.create_organization("acme")
    first = registry.create_branch_project("one", parent=org)
    second = registry.create_branch_project("two", parent=org)
    plain = registry.create_folder("docs", parent=org)
    assert first.trigger_property is None

    prop = engine.create_property(TriggerConfig(run_delete_jobs_to_trigger="ops/on-run-delete"))
    org.trigger_property = prop
    updated = PropertyPropagator().on_property_updated(org)

    assert updated == ["acme/one", "acme/two"]
    assert first.trigger_property is prop
    assert second.trigger_property is prop
    assert plain.trigger_property is None
    assert RUN_NUMBER_KEY in downstream["run_delete"].declared_names


def test_update_on_non_organization_does_nothing(registry: InMemoryJobRegistry) -> None:
    project = registry.create_branch_project("service")
    project.trigger_property = TriggerProperty(registry)

    assert PropertyPropagator().on_property_updated(project) == []


def test_nested_organization_children_are_not_eligible(registry: InMemoryJobRegistry) -> None:
    org = registry.create_organization("acme")
    org.trigger_property = TriggerProperty(registry)
    folder = registry.create_folder("team", parent=org)
    nested = registry.create_branch_project("service", parent=folder)

    assert PropertyPropagator().on_container_created(nested) is None
    assert nested.trigger_property is None
