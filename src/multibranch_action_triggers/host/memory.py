"""In-memory host: folders, jobs, runs, a recording scheduler and branch metadata.

Used by the tests, the CLI and the REST adapter. Lifecycle callbacks are fired
to subscribed listeners the way a CI server notifies its item listeners.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from multibranch_action_triggers.host.declaration_store import DeclarationStore
from multibranch_action_triggers.host.model import BranchMetadata, ContainerKind
from multibranch_action_triggers.triggers.parameters import ParameterDefinition, ParameterValue

if TYPE_CHECKING:
    from multibranch_action_triggers.triggers.property import TriggerProperty

logger = logging.getLogger(__name__)


class JobLockedError(RuntimeError):
    pass


class ItemListener(Protocol):
    def on_created(self, job: Job) -> object: ...

    def on_deleted(self, job: Job) -> object: ...

    def on_run_deleted(self, job: Job, run: Run) -> object: ...

    def on_container_created(self, container: Folder) -> object: ...


@dataclass(frozen=True, slots=True)
class Run:
    number: int
    display_name: str


def _join(parent: Folder | None, name: str) -> str:
    return f"{parent.full_name}/{name}" if parent is not None else name


class Folder:
    """A container. ``kind`` says whether it is a plain folder, a
    branch-indexed project or an organization folder."""

    def __init__(
        self, name: str, *, parent: Folder | None = None, kind: ContainerKind = ContainerKind.FOLDER
    ) -> None:
        self.name = name
        self.parent = parent
        self.kind = kind
        self.trigger_property: TriggerProperty | None = None
        self._containers: list[Folder] = []
        self._jobs: list[Job] = []

    @property
    def full_name(self) -> str:
        return _join(self.parent, self.name)

    @property
    def containers(self) -> list[Folder]:
        return list(self._containers)

    @property
    def jobs(self) -> list[Job]:
        return list(self._jobs)

    def __repr__(self) -> str:
        return f"Folder({self.full_name!r}, kind={self.kind.value})"


class Job:
    def __init__(
        self,
        name: str,
        *,
        parent: Folder | None = None,
        buildable: bool = True,
        locked: bool = False,
        store: DeclarationStore | None = None,
    ) -> None:
        self.name = name
        self.parent = parent
        self.buildable = buildable
        self.locked = locked
        self._store = store
        self._lock = threading.Lock()
        self._runs: list[Run] = []
        self._next_run_number = 1
        seeded = store.get(self.full_name) if store is not None else None
        self._declarations: list[ParameterDefinition] = seeded or []

    @property
    def full_name(self) -> str:
        return _join(self.parent, self.name)

    @property
    def runs(self) -> list[Run]:
        with self._lock:
            return list(self._runs)

    def add_run(self, display_name: str | None = None) -> Run:
        with self._lock:
            number = self._next_run_number
            self._next_run_number += 1
            run = Run(number=number, display_name=display_name or f"#{number}")
            self._runs.append(run)
            return run

    def remove_run(self, number: int) -> Run | None:
        with self._lock:
            for idx, run in enumerate(self._runs):
                if run.number == number:
                    return self._runs.pop(idx)
            return None

    def get_parameter_declarations(self) -> list[ParameterDefinition]:
        with self._lock:
            return list(self._declarations)

    def set_parameter_declarations(self, declarations: list[ParameterDefinition]) -> None:
        if self.locked:
            raise JobLockedError(f"Job is locked: {self.full_name}")
        with self._lock:
            self._declarations = list(declarations)
        if self._store is not None:
            self._store.save_declarations(self.full_name, declarations)

    @property
    def declared_names(self) -> list[str]:
        return [d.name for d in self.get_parameter_declarations()]

    def __repr__(self) -> str:
        return f"Job({self.full_name!r})"


class InMemoryJobRegistry:
    """Thread-safe tree of folders and jobs."""

    def __init__(self, store: DeclarationStore | None = None) -> None:
        self._lock = threading.RLock()
        self._store = store
        self._roots: list[Folder | Job] = []
        self._listeners: list[ItemListener] = []

    def subscribe(self, listener: ItemListener) -> None:
        self._listeners.append(listener)

    # -- creation ----------------------------------------------------------------

    def create_folder(
        self, name: str, *, parent: Folder | None = None, kind: ContainerKind = ContainerKind.FOLDER
    ) -> Folder:
        with self._lock:
            folder = Folder(name, parent=parent, kind=kind)
            if parent is None:
                self._roots.append(folder)
            else:
                parent._containers.append(folder)
        for listener in self._listeners:
            listener.on_container_created(folder)
        return folder

    def create_organization(self, name: str, *, parent: Folder | None = None) -> Folder:
        return self.create_folder(name, parent=parent, kind=ContainerKind.ORGANIZATION)

    def create_branch_project(self, name: str, *, parent: Folder | None = None) -> Folder:
        return self.create_folder(name, parent=parent, kind=ContainerKind.BRANCH_INDEXED)

    def create_job(
        self,
        name: str,
        *,
        parent: Folder | None = None,
        buildable: bool = True,
        locked: bool = False,
    ) -> Job:
        with self._lock:
            job = Job(name, parent=parent, buildable=buildable, locked=locked, store=self._store)
            if parent is None:
                self._roots.append(job)
            else:
                parent._jobs.append(job)
        for listener in self._listeners:
            listener.on_created(job)
        return job

    # -- deletion ----------------------------------------------------------------

    def delete_job(self, job: Job) -> None:
        with self._lock:
            siblings = self._roots if job.parent is None else job.parent._jobs
            if job in siblings:
                siblings.remove(job)
        for listener in self._listeners:
            listener.on_deleted(job)

    def delete_run(self, job: Job, number: int) -> Run | None:
        run = job.remove_run(number)
        if run is None:
            return None
        for listener in self._listeners:
            listener.on_run_deleted(job, run)
        return run

    # -- queries -----------------------------------------------------------------

    def _walk(self, items: Iterable[Folder | Job]) -> Iterable[Folder | Job]:
        for item in items:
            yield item
            if isinstance(item, Folder):
                yield from self._walk(item._containers)
                yield from item._jobs

    def list_all_jobs(self) -> list[Job]:
        with self._lock:
            return [item for item in self._walk(self._roots) if isinstance(item, Job)]

    def list_all_containers(self) -> list[Folder]:
        with self._lock:
            return [item for item in self._walk(self._roots) if isinstance(item, Folder)]

    def get_job(self, full_name: str) -> Job | None:
        for job in self.list_all_jobs():
            if job.full_name == full_name:
                return job
        return None

    def get_container(self, full_name: str) -> Folder | None:
        for folder in self.list_all_containers():
            if folder.full_name == full_name:
                return folder
        return None


@dataclass(frozen=True, slots=True)
class ScheduledBuild:
    job_full_name: str
    quiet_period: int
    parameters: list[ParameterValue]

    @property
    def parameter_map(self) -> dict[str, str]:
        return {p.name: p.value for p in self.parameters}


@dataclass
class RecordingBuildScheduler:
    """Records builds instead of running them. Jobs listed in ``failing`` raise."""

    failing: set[str] = field(default_factory=set)

    def __post_init__(self) -> None:
        self._lock = threading.Lock()
        self._builds: list[ScheduledBuild] = []

    def schedule(self, job: Job, quiet_period: int, parameters: list[ParameterValue]) -> None:
        if job.full_name in self.failing:
            raise RuntimeError(f"Scheduler rejected build for {job.full_name}")
        build = ScheduledBuild(
            job_full_name=job.full_name, quiet_period=quiet_period, parameters=list(parameters)
        )
        with self._lock:
            self._builds.append(build)
        logger.debug("Build scheduled", extra={"job": job.full_name})

    @property
    def builds(self) -> list[ScheduledBuild]:
        with self._lock:
            return list(self._builds)

    def builds_for(self, job_full_name: str) -> list[ScheduledBuild]:
        return [b for b in self.builds if b.job_full_name == job_full_name]


@dataclass
class StaticBranchMetadataProvider:
    """Branch metadata registered up front; unknown jobs are plain branches."""

    metadata: dict[str, BranchMetadata] = field(default_factory=dict)

    def register(self, job_full_name: str, metadata: BranchMetadata) -> None:
        self.metadata[job_full_name] = metadata

    def branch_metadata(self, job: Job) -> BranchMetadata:
        return self.metadata.get(job.full_name) or BranchMetadata.plain(job.name)
