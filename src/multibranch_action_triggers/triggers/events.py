from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from multibranch_action_triggers.host.model import JobHandle


class TriggerKind(str, Enum):
    CREATE = "create"
    DELETE = "delete"
    RUN_DELETE = "run_delete"

    @property
    def includes_run_parameters(self) -> bool:
        return self is TriggerKind.RUN_DELETE


@dataclass(frozen=True, slots=True)
class JobCreated:
    """Branch indexing created a job for a newly discovered branch."""

    job: JobHandle

    @property
    def kind(self) -> TriggerKind:
        return TriggerKind.CREATE


@dataclass(frozen=True, slots=True)
class JobDeleted:
    """Branch indexing removed the job of a vanished branch."""

    job: JobHandle

    @property
    def kind(self) -> TriggerKind:
        return TriggerKind.DELETE


@dataclass(frozen=True, slots=True)
class RunDeleted:
    """A run of a branch job was deleted, on its own or together with its job."""

    job: JobHandle
    run_number: int | None
    run_display_name: str | None

    @property
    def kind(self) -> TriggerKind:
        return TriggerKind.RUN_DELETE


LifecycleEvent = JobCreated | JobDeleted | RunDeleted
