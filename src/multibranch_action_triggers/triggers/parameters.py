"""Build parameters passed to triggered jobs, and declaration reconciliation.

Downstream jobs receive a fixed set of string parameters describing the branch
job that caused the trigger. Before a job can receive them it must declare them,
so every target job is reconciled: the engine-owned declarations are written
over the job's existing set, other declarations are left in place, and the
result is saved back through the job registry.
"""

from __future__ import annotations

import logging
import threading
import weakref
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict

from multibranch_action_triggers.host.model import JobHandle

logger = logging.getLogger(__name__)

PROJECT_NAME_KEY = "SOURCE_PROJECT_NAME"
PROJECT_FULL_NAME_KEY = "SOURCE_PROJECT_FULL_NAME"
SOURCE_BRANCH_NAME_KEY = "SOURCE_BRANCH_NAME"
TARGET_BRANCH_NAME_KEY = "TARGET_BRANCH_NAME"
RUN_NUMBER_KEY = "SOURCE_RUN_NUMBER"
RUN_DISPLAY_NAME_KEY = "SOURCE_RUN_DISPLAY_NAME"

STANDARD_KEYS: tuple[str, ...] = (
    PROJECT_NAME_KEY,
    PROJECT_FULL_NAME_KEY,
    SOURCE_BRANCH_NAME_KEY,
    TARGET_BRANCH_NAME_KEY,
)
RUN_KEYS: tuple[str, ...] = (RUN_NUMBER_KEY, RUN_DISPLAY_NAME_KEY)

DECLARATION_DESCRIPTION = "Added by Multibranch Action Triggers"
VALUE_DESCRIPTION = "Set by Multibranch Action Triggers"


class AdditionalParameter(BaseModel):
    """User-defined name/value pair injected into every triggered build."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    value: str = ""


@dataclass(frozen=True, slots=True)
class ParameterDefinition:
    """A string parameter declared on a job."""

    name: str
    default_value: str = ""
    description: str = DECLARATION_DESCRIPTION


@dataclass(frozen=True, slots=True)
class ParameterValue:
    """A string parameter value handed to the build scheduler."""

    name: str
    value: str
    description: str = VALUE_DESCRIPTION


def required_definitions(
    *, include_run_parameters: bool, extra: Sequence[AdditionalParameter] = ()
) -> list[ParameterDefinition]:
    """Declarations a target job must carry for a given trigger kind."""

    keys = list(STANDARD_KEYS)
    if include_run_parameters:
        keys.extend(RUN_KEYS)
    definitions = [ParameterDefinition(name=key) for key in keys]
    definitions.extend(
        ParameterDefinition(name=param.name, default_value=param.value) for param in extra
    )
    return definitions


@dataclass(frozen=True, slots=True)
class ReconcileResult:
    ok: bool
    message: str
    added: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)


# Shared by every reconciler in the process; an entry lives while a caller holds it.
_JOB_LOCKS: weakref.WeakValueDictionary[str, threading.Lock] = weakref.WeakValueDictionary()
_JOB_LOCKS_GUARD = threading.Lock()


def job_lock(job: JobHandle) -> threading.Lock:
    """Lock serializing declaration updates of ``job`` across the process."""

    with _JOB_LOCKS_GUARD:
        lock = _JOB_LOCKS.get(job.full_name)
        if lock is None:
            lock = threading.Lock()
            _JOB_LOCKS[job.full_name] = lock
        return lock


def merge_declarations(
    existing: Sequence[ParameterDefinition], required: Sequence[ParameterDefinition]
) -> tuple[list[ParameterDefinition], list[str], list[str]]:
    """Overlay ``required`` on ``existing``.

    Names in ``required`` are owned by the engine: an existing declaration with
    such a name is replaced in place, missing ones are appended. Declarations
    with any other name are kept untouched. Returns the merged list and the
    names that were added and updated.
    """

    owned: dict[str, ParameterDefinition] = {}
    for definition in required:
        owned.setdefault(definition.name, definition)

    merged: list[ParameterDefinition] = []
    placed: set[str] = set()
    updated: list[str] = []
    for definition in existing:
        wanted = owned.get(definition.name)
        if wanted is None:
            merged.append(definition)
            continue
        if definition.name in placed:
            continue
        if wanted != definition:
            updated.append(definition.name)
        merged.append(wanted)
        placed.add(definition.name)

    added: list[str] = []
    for name, definition in owned.items():
        if name not in placed:
            merged.append(definition)
            added.append(name)
    return merged, added, updated


class ParameterReconciler:
    """Make target jobs declare every parameter the engine will send.

    The engine's own declarations are rewritten on every call so a changed
    additional-parameter default reaches the job; other declarations are kept.
    Updates of one job are serialized through :func:`job_lock`, whichever
    reconciler instance performs them.
    """

    def ensure_parameters(
        self,
        job: JobHandle,
        *,
        include_run_parameters: bool,
        extra: Sequence[AdditionalParameter] = (),
    ) -> ReconcileResult:
        required = required_definitions(include_run_parameters=include_run_parameters, extra=extra)
        with job_lock(job):
            try:
                merged, added, updated = merge_declarations(
                    job.get_parameter_declarations(), required
                )
                job.set_parameter_declarations(merged)
            except Exception as e:
                logger.warning(
                    "Could not set string parameter definitions; "
                    "jobs triggered by branch events may miss parameters",
                    extra={"job": job.full_name, "error": str(e)},
                )
                return ReconcileResult(ok=False, message=str(e))

        if added or updated:
            logger.debug(
                "Parameter declarations reconciled",
                extra={"job": job.full_name, "added": added, "updated": updated},
            )
        return ReconcileResult(ok=True, message="Reconciled", added=added, updated=updated)

    def ensure_all(
        self,
        jobs: Iterable[JobHandle],
        *,
        include_run_parameters: bool,
        extra: Sequence[AdditionalParameter] = (),
    ) -> list[ReconcileResult]:
        return [
            self.ensure_parameters(
                job, include_run_parameters=include_run_parameters, extra=extra
            )
            for job in jobs
        ]


def build_parameter_values(
    *,
    project_name: str,
    project_full_name: str,
    source_branch_name: str,
    target_branch_name: str,
    run_number: int | None = None,
    run_display_name: str | None = None,
    extra: Sequence[AdditionalParameter] = (),
) -> list[ParameterValue]:
    """Assemble the values for one dispatched build.

    Additional parameters send their configured value, independent of the
    default that reconciliation put on the declaration.
    """

    values = [
        ParameterValue(PROJECT_NAME_KEY, project_name),
        ParameterValue(PROJECT_FULL_NAME_KEY, project_full_name),
        ParameterValue(SOURCE_BRANCH_NAME_KEY, source_branch_name),
        ParameterValue(TARGET_BRANCH_NAME_KEY, target_branch_name),
    ]
    if run_number is not None:
        values.append(ParameterValue(RUN_NUMBER_KEY, str(run_number)))
    if run_display_name is not None:
        values.append(ParameterValue(RUN_DISPLAY_NAME_KEY, run_display_name))
    values.extend(ParameterValue(param.name, param.value) for param in extra)
    return values
