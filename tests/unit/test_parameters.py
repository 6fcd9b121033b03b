"""Unit tests for parameter declarations, values and reconciliation."""

from __future__ import annotations

import threading
import time

import pytest

from multibranch_action_triggers.host.memory import InMemoryJobRegistry
from multibranch_action_triggers.triggers.parameters import (
    PROJECT_FULL_NAME_KEY,
    PROJECT_NAME_KEY,
    RUN_DISPLAY_NAME_KEY,
    RUN_NUMBER_KEY,
    SOURCE_BRANCH_NAME_KEY,
    TARGET_BRANCH_NAME_KEY,
    AdditionalParameter,
    ParameterDefinition,
    ParameterReconciler,
    build_parameter_values,
    job_lock,
    required_definitions,
)

STANDARD = [
    PROJECT_NAME_KEY,
    PROJECT_FULL_NAME_KEY,
    SOURCE_BRANCH_NAME_KEY,
    TARGET_BRANCH_NAME_KEY,
]


def test_additional_parameter_equality_is_by_value() -> None:
    assert AdditionalParameter(name="ENV", value="prod") == AdditionalParameter(
        name="ENV", value="prod"
    )
    assert AdditionalParameter(name="ENV", value="prod") != AdditionalParameter(
        name="ENV", value="dev"
    )


def test_required_definitions_without_run_parameters() -> None:
    names = [d.name for d in required_definitions(include_run_parameters=False)]
    assert names == STANDARD


def test_required_definitions_with_run_parameters_and_extra() -> None:
    extra = [AdditionalParameter(name="ENV", value="prod")]
    definitions = required_definitions(include_run_parameters=True, extra=extra)
    assert [d.name for d in definitions] == [*STANDARD, RUN_NUMBER_KEY, RUN_DISPLAY_NAME_KEY, "ENV"]
    assert definitions[-1].default_value == "prod"


def test_ensure_parameters_is_idempotent(registry: InMemoryJobRegistry) -> None:
    job = registry.create_job("target")
    reconciler = ParameterReconciler()
    extra = [AdditionalParameter(name="ENV", value="prod")]

    first = reconciler.ensure_parameters(job, include_run_parameters=True, extra=extra)
    after_first = job.get_parameter_declarations()
    second = reconciler.ensure_parameters(job, include_run_parameters=True, extra=extra)

    assert first.ok and second.ok
    assert first.added == [*STANDARD, RUN_NUMBER_KEY, RUN_DISPLAY_NAME_KEY, "ENV"]
    assert second.added == []
    assert job.get_parameter_declarations() == after_first
    assert len(job.declared_names) == len(set(job.declared_names))


def test_ensure_parameters_rewrites_owned_and_keeps_foreign_declarations(
    registry: InMemoryJobRegistry,
) -> None:
    job = registry.create_job("target")
    foreign = ParameterDefinition(name="OTHER", default_value="keep", description="mine")
    stale = ParameterDefinition(name=PROJECT_NAME_KEY, default_value="old", description="mine")
    job.set_parameter_declarations([foreign, stale])

    result = ParameterReconciler().ensure_parameters(job, include_run_parameters=False)

    declarations = job.get_parameter_declarations()
    assert declarations[0] == foreign
    assert declarations[1] == ParameterDefinition(name=PROJECT_NAME_KEY)
    assert job.declared_names == ["OTHER", *STANDARD]
    assert result.updated == [PROJECT_NAME_KEY]
    assert result.added == STANDARD[1:]


def test_changed_extra_value_replaces_declared_default(registry: InMemoryJobRegistry) -> None:
    job = registry.create_job("target")
    reconciler = ParameterReconciler()
    reconciler.ensure_parameters(
        job, include_run_parameters=False, extra=[AdditionalParameter(name="ENV", value="staging")]
    )

    result = reconciler.ensure_parameters(
        job, include_run_parameters=False, extra=[AdditionalParameter(name="ENV", value="prod")]
    )

    [env] = [d for d in job.get_parameter_declarations() if d.name == "ENV"]
    assert env.default_value == "prod"
    assert result.updated == ["ENV"]
    assert result.added == []


def test_run_declarations_survive_a_create_reconcile(registry: InMemoryJobRegistry) -> None:
    job = registry.create_job("target")
    reconciler = ParameterReconciler()
    reconciler.ensure_parameters(job, include_run_parameters=True)

    reconciler.ensure_parameters(job, include_run_parameters=False)

    assert job.declared_names == [*STANDARD, RUN_NUMBER_KEY, RUN_DISPLAY_NAME_KEY]


def test_ensure_parameters_declares_duplicate_extra_names_once(
    registry: InMemoryJobRegistry,
) -> None:
    job = registry.create_job("target")
    extra = [AdditionalParameter(name="ENV", value="a"), AdditionalParameter(name="ENV", value="b")]

    ParameterReconciler().ensure_parameters(job, include_run_parameters=False, extra=extra)

    assert job.declared_names.count("ENV") == 1


def test_ensure_parameters_logs_and_continues_when_job_is_locked(
    registry: InMemoryJobRegistry, caplog
) -> None:
    job = registry.create_job("locked", locked=True)

    result = ParameterReconciler().ensure_parameters(job, include_run_parameters=False)

    assert not result.ok
    assert "locked" in result.message
    assert job.get_parameter_declarations() == []
    assert any(r.levelname == "WARNING" for r in caplog.records)


def test_concurrent_reconciliation_does_not_lose_updates(registry: InMemoryJobRegistry) -> None:
    job = registry.create_job("shared")
    reconciler = ParameterReconciler()
    barrier = threading.Barrier(8)

    def worker(i: int) -> None:
        barrier.wait()
        reconciler.ensure_parameters(
            job,
            include_run_parameters=i % 2 == 0,
            extra=[AdditionalParameter(name=f"EXTRA_{i}", value=str(i))],
        )

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    names = job.declared_names
    assert len(names) == len(set(names))
    assert set(names) == {
        *STANDARD,
        RUN_NUMBER_KEY,
        RUN_DISPLAY_NAME_KEY,
        *(f"EXTRA_{i}" for i in range(8)),
    }


def test_separate_reconcilers_share_the_job_lock(
    registry: InMemoryJobRegistry, monkeypatch: pytest.MonkeyPatch
) -> None:
    job = registry.create_job("shared")
    read_declarations = job.get_parameter_declarations

    def slow_read() -> list[ParameterDefinition]:
        declarations = read_declarations()
        time.sleep(0.02)
        return declarations

    monkeypatch.setattr(job, "get_parameter_declarations", slow_read)
    barrier = threading.Barrier(4)

    def worker(i: int) -> None:
        barrier.wait()
        ParameterReconciler().ensure_parameters(
            job,
            include_run_parameters=False,
            extra=[AdditionalParameter(name=f"EXTRA_{i}", value=str(i))],
        )

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert {f"EXTRA_{i}" for i in range(4)} <= set(job.declared_names)


def test_job_lock_is_keyed_by_full_name(registry: InMemoryJobRegistry) -> None:
    first = registry.create_job("a")
    second = registry.create_job("b")

    lock = job_lock(first)

    assert job_lock(first) is lock
    assert job_lock(second) is not lock


def test_build_parameter_values_for_create() -> None:
    values = build_parameter_values(
        project_name="feature-x",
        project_full_name="app/feature-x",
        source_branch_name="feature-x",
        target_branch_name="",
    )
    assert [(v.name, v.value) for v in values] == [
        (PROJECT_NAME_KEY, "feature-x"),
        (PROJECT_FULL_NAME_KEY, "app/feature-x"),
        (SOURCE_BRANCH_NAME_KEY, "feature-x"),
        (TARGET_BRANCH_NAME_KEY, ""),
    ]


def test_build_parameter_values_for_run_delete_with_extras() -> None:
    values = build_parameter_values(
        project_name="PR-3",
        project_full_name="app/PR-3",
        source_branch_name="topic",
        target_branch_name="main",
        run_number=7,
        run_display_name="#7",
        extra=[
            AdditionalParameter(name="ENV", value="a"),
            AdditionalParameter(name="ENV", value="b"),
        ],
    )
    pairs = [(v.name, v.value) for v in values]
    assert (RUN_NUMBER_KEY, "7") in pairs
    assert (RUN_DISPLAY_NAME_KEY, "#7") in pairs
    # Duplicate additional parameter names are all emitted.
    assert pairs[-2:] == [("ENV", "a"), ("ENV", "b")]


def test_build_parameter_values_omits_null_run_fields() -> None:
    values = build_parameter_values(
        project_name="b",
        project_full_name="p/b",
        source_branch_name="b",
        target_branch_name="",
        run_number=None,
        run_display_name="#1",
    )
    names = [v.name for v in values]
    assert RUN_NUMBER_KEY not in names
    assert RUN_DISPLAY_NAME_KEY in names
