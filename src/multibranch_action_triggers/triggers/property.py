"""Trigger configuration attached to a branch-indexed or organization container.

Three job lists decide what runs when branch indexing creates a branch job,
deletes one, or when a run of a branch job is deleted. Include/exclude wildcard
filters select which branch jobs fire at all, and additional parameters are
passed to every triggered build.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from multibranch_action_triggers.host.model import (
    Container,
    ContainerKind,
    JobHandle,
    JobRegistry,
)
from multibranch_action_triggers.triggers.events import TriggerKind
from multibranch_action_triggers.triggers.filters import (
    DEFAULT_EXCLUDE_FILTER,
    DEFAULT_INCLUDE_FILTER,
    BranchFilter,
    FilterVerdict,
)
from multibranch_action_triggers.triggers.parameters import (
    AdditionalParameter,
    ParameterReconciler,
)
from multibranch_action_triggers.triggers.resolver import JobResolver, join_job_names

logger = logging.getLogger(__name__)

DISPLAY_NAME = "Pipeline Trigger"

_APPLICABLE_KINDS = frozenset({ContainerKind.BRANCH_INDEXED, ContainerKind.ORGANIZATION})


class TriggerConfig(BaseModel):
    """Serializable form of a :class:`TriggerProperty`."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    create_jobs_to_trigger: str = ""
    delete_jobs_to_trigger: str = ""
    run_delete_jobs_to_trigger: str = ""
    branch_include_filter: str = Field(default=DEFAULT_INCLUDE_FILTER)
    branch_exclude_filter: str = Field(default=DEFAULT_EXCLUDE_FILTER)
    additional_parameters: list[AdditionalParameter] = Field(default_factory=list)


def load_trigger_config(path: Path) -> TriggerConfig:
    return TriggerConfig.model_validate_json(path.read_text(encoding="utf-8"))


class TriggerProperty:
    """Live trigger configuration bound to a job registry.

    Editing a job list resolves it right away, reconciles parameter
    declarations on the resolved jobs and stores the canonical names of the
    jobs that exist. Dispatch re-resolves through :meth:`jobs_for`.
    """

    def __init__(
        self,
        registry: JobRegistry,
        *,
        create_jobs_to_trigger: str = "",
        delete_jobs_to_trigger: str = "",
        run_delete_jobs_to_trigger: str = "",
        branch_include_filter: str | None = DEFAULT_INCLUDE_FILTER,
        branch_exclude_filter: str | None = DEFAULT_EXCLUDE_FILTER,
        additional_parameters: Sequence[AdditionalParameter] = (),
        reconciler: ParameterReconciler | None = None,
    ) -> None:
        self._lock = threading.RLock()
        self._resolver = JobResolver(registry)
        self._reconciler = reconciler or ParameterReconciler()

        self._job_names: dict[TriggerKind, str] = {kind: "" for kind in TriggerKind}
        self._resolved: dict[TriggerKind, list[JobHandle]] = {kind: [] for kind in TriggerKind}
        self._additional_parameters: tuple[AdditionalParameter, ...] = tuple(
            additional_parameters
        )
        self._include_filter = DEFAULT_INCLUDE_FILTER
        self._exclude_filter = DEFAULT_EXCLUDE_FILTER
        self.set_branch_include_filter(branch_include_filter)
        self.set_branch_exclude_filter(branch_exclude_filter)

        self.set_create_jobs_to_trigger(create_jobs_to_trigger)
        self.set_delete_jobs_to_trigger(delete_jobs_to_trigger)
        self.set_run_delete_jobs_to_trigger(run_delete_jobs_to_trigger)

    @classmethod
    def from_config(
        cls,
        config: TriggerConfig,
        registry: JobRegistry,
        *,
        reconciler: ParameterReconciler | None = None,
    ) -> TriggerProperty:
        return cls(
            registry,
            create_jobs_to_trigger=config.create_jobs_to_trigger,
            delete_jobs_to_trigger=config.delete_jobs_to_trigger,
            run_delete_jobs_to_trigger=config.run_delete_jobs_to_trigger,
            branch_include_filter=config.branch_include_filter,
            branch_exclude_filter=config.branch_exclude_filter,
            additional_parameters=config.additional_parameters,
            reconciler=reconciler,
        )

    def to_config(self) -> TriggerConfig:
        with self._lock:
            return TriggerConfig(
                create_jobs_to_trigger=self._job_names[TriggerKind.CREATE],
                delete_jobs_to_trigger=self._job_names[TriggerKind.DELETE],
                run_delete_jobs_to_trigger=self._job_names[TriggerKind.RUN_DELETE],
                branch_include_filter=self._include_filter,
                branch_exclude_filter=self._exclude_filter,
                additional_parameters=list(self._additional_parameters),
            )

    @staticmethod
    def is_applicable(container: Container) -> bool:
        return container.kind in _APPLICABLE_KINDS

    # -- job lists -------------------------------------------------------------

    def _set_jobs(self, kind: TriggerKind, full_names: str | None) -> None:
        with self._lock:
            jobs = self._resolver.resolve(full_names)
            self._reconciler.ensure_all(
                jobs,
                include_run_parameters=kind.includes_run_parameters,
                extra=self._additional_parameters,
            )
            self._resolved[kind] = jobs
            self._job_names[kind] = join_job_names(jobs)

    @property
    def create_jobs_to_trigger(self) -> str:
        return self._job_names[TriggerKind.CREATE]

    def set_create_jobs_to_trigger(self, full_names: str | None) -> None:
        self._set_jobs(TriggerKind.CREATE, full_names)

    @property
    def delete_jobs_to_trigger(self) -> str:
        return self._job_names[TriggerKind.DELETE]

    def set_delete_jobs_to_trigger(self, full_names: str | None) -> None:
        self._set_jobs(TriggerKind.DELETE, full_names)

    @property
    def run_delete_jobs_to_trigger(self) -> str:
        return self._job_names[TriggerKind.RUN_DELETE]

    def set_run_delete_jobs_to_trigger(self, full_names: str | None) -> None:
        self._set_jobs(TriggerKind.RUN_DELETE, full_names)

    @property
    def create_action_jobs(self) -> list[JobHandle]:
        return list(self._resolved[TriggerKind.CREATE])

    @property
    def delete_action_jobs(self) -> list[JobHandle]:
        return list(self._resolved[TriggerKind.DELETE])

    @property
    def run_delete_action_jobs(self) -> list[JobHandle]:
        return list(self._resolved[TriggerKind.RUN_DELETE])

    def job_names_for(self, kind: TriggerKind) -> str:
        return self._job_names[kind]

    def jobs_for(self, kind: TriggerKind) -> list[JobHandle]:
        """Resolve the configured names for ``kind`` against the registry now."""
        return self._resolver.resolve(self._job_names[kind])

    # -- filters ---------------------------------------------------------------

    @property
    def branch_include_filter(self) -> str:
        return self._include_filter

    def set_branch_include_filter(self, expression: str | None) -> None:
        with self._lock:
            self._include_filter = DEFAULT_INCLUDE_FILTER if expression is None else expression
            self._filter = BranchFilter.from_expressions(self._include_filter, self._exclude_filter)

    @property
    def branch_exclude_filter(self) -> str:
        return self._exclude_filter

    def set_branch_exclude_filter(self, expression: str | None) -> None:
        with self._lock:
            self._exclude_filter = DEFAULT_EXCLUDE_FILTER if expression is None else expression
            self._filter = BranchFilter.from_expressions(self._include_filter, self._exclude_filter)

    def evaluate_filter(self, name: str) -> FilterVerdict:
        return self._filter.evaluate(name)

    def accepts(self, name: str) -> bool:
        return self._filter.accepts(name)

    # -- additional parameters ---------------------------------------------------

    @property
    def additional_parameters(self) -> tuple[AdditionalParameter, ...]:
        return self._additional_parameters

    def set_additional_parameters(self, parameters: Sequence[AdditionalParameter]) -> None:
        with self._lock:
            self._additional_parameters = tuple(parameters)
        self.reconcile_all()

    @property
    def reconciler(self) -> ParameterReconciler:
        return self._reconciler

    def reconcile_all(self) -> None:
        """Re-run declaration reconciliation for every configured target."""
        with self._lock:
            extra = self._additional_parameters
            for kind in TriggerKind:
                jobs = self.jobs_for(kind)
                self._reconciler.ensure_all(
                    jobs, include_run_parameters=kind.includes_run_parameters, extra=extra
                )
        logger.debug("Trigger targets reconciled")

    def __repr__(self) -> str:
        return (
            f"TriggerProperty(create={self.create_jobs_to_trigger!r}, "
            f"delete={self.delete_jobs_to_trigger!r}, "
            f"run_delete={self.run_delete_jobs_to_trigger!r}, "
            f"include={self._include_filter!r}, exclude={self._exclude_filter!r})"
        )
