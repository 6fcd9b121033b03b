"""Collaborator contracts supplied by the host CI system.

The trigger engine never owns jobs, folders or the build queue. It only talks to
these protocols, so any host (a real CI server, or the in-memory host used in
tests) can be plugged in.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from multibranch_action_triggers.triggers.parameters import (
        ParameterDefinition,
        ParameterValue,
    )
    from multibranch_action_triggers.triggers.property import TriggerProperty


class ContainerKind(str, Enum):
    FOLDER = "folder"
    BRANCH_INDEXED = "branch_indexed"
    ORGANIZATION = "organization"


class BranchKind(str, Enum):
    PLAIN = "plain"
    CHANGE_REQUEST = "change_request"


@dataclass(frozen=True, slots=True)
class BranchMetadata:
    """What the branch source knows about the branch behind a job."""

    kind: BranchKind
    branch_name: str
    origin_name: str | None = None
    target_name: str | None = None

    @staticmethod
    def plain(branch_name: str) -> BranchMetadata:
        return BranchMetadata(kind=BranchKind.PLAIN, branch_name=branch_name)


class Run(Protocol):
    @property
    def number(self) -> int: ...

    @property
    def display_name(self) -> str: ...


class Container(Protocol):
    """A folder-like item that holds jobs or other containers."""

    @property
    def name(self) -> str: ...

    @property
    def full_name(self) -> str: ...

    @property
    def parent(self) -> Container | None: ...

    @property
    def kind(self) -> ContainerKind: ...

    @property
    def containers(self) -> Sequence[Container]: ...

    @property
    def jobs(self) -> Sequence[JobHandle]: ...

    trigger_property: TriggerProperty | None


class JobHandle(Protocol):
    @property
    def name(self) -> str: ...

    @property
    def full_name(self) -> str: ...

    @property
    def parent(self) -> Container | None: ...

    @property
    def buildable(self) -> bool:
        """True when the job accepts parameterized builds."""
        ...

    @property
    def runs(self) -> Iterable[Run]: ...

    def get_parameter_declarations(self) -> list[ParameterDefinition]: ...

    def set_parameter_declarations(self, declarations: list[ParameterDefinition]) -> None: ...


class JobRegistry(Protocol):
    def list_all_jobs(self) -> list[JobHandle]: ...


class BuildScheduler(Protocol):
    def schedule(
        self, job: JobHandle, quiet_period: int, parameters: list[ParameterValue]
    ) -> None:
        """Enqueue a build and return immediately."""
        ...


class BranchMetadataProvider(Protocol):
    def branch_metadata(self, job: JobHandle) -> BranchMetadata: ...
