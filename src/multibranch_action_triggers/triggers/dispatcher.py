"""Turn branch lifecycle events into parameterized builds of the configured jobs.

Dispatch runs synchronously in the caller's thread and never raises: anything
unexpected is logged and reported as a skipped outcome so branch indexing is
never interrupted by a trigger problem.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from multibranch_action_triggers.host.model import (
    BranchMetadataProvider,
    BuildScheduler,
    Container,
    ContainerKind,
)
from multibranch_action_triggers.triggers.events import LifecycleEvent, RunDeleted, TriggerKind
from multibranch_action_triggers.triggers.filters import FilterVerdict
from multibranch_action_triggers.triggers.parameters import build_parameter_values
from multibranch_action_triggers.triggers.property import TriggerProperty
from multibranch_action_triggers.triggers.pull_request import resolve_pull_request_info
from multibranch_action_triggers.triggers.state_machine import (
    DispatchState,
    DispatchTrace,
    SkipReason,
)

logger = logging.getLogger(__name__)

QUIET_PERIOD = 0


def effective_property(container: Container | None) -> TriggerProperty | None:
    """Nearest trigger property on ``container`` or one of its ancestors."""

    current = container
    while current is not None:
        prop = current.trigger_property
        if prop is not None:
            return prop
        current = current.parent
    return None


@dataclass(frozen=True, slots=True)
class DispatchOutcome:
    kind: TriggerKind
    job_full_name: str
    state: DispatchState
    skip_reason: SkipReason | None = None
    scheduled: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    history: list[DispatchState] = field(default_factory=list)

    @property
    def dispatched(self) -> bool:
        return self.state is DispatchState.DISPATCHED


class TriggerDispatcher:
    def __init__(
        self,
        *,
        scheduler: BuildScheduler,
        metadata_provider: BranchMetadataProvider | None = None,
    ) -> None:
        self._scheduler = scheduler
        self._metadata_provider = metadata_provider

    def dispatch(self, event: LifecycleEvent) -> DispatchOutcome:
        trace = DispatchTrace()
        try:
            return self._dispatch(event, trace)
        except Exception:
            logger.exception(
                "Trigger dispatch failed",
                extra={"job": _safe_full_name(event), "kind": event.kind.value},
            )
            if not trace.finished:
                trace.advance(DispatchState.SKIPPED)
            return _outcome(event, trace, skip_reason=SkipReason.ERROR)

    def _dispatch(self, event: LifecycleEvent, trace: DispatchTrace) -> DispatchOutcome:
        job = event.job
        parent = job.parent
        if parent is None or parent.kind is not ContainerKind.BRANCH_INDEXED:
            logger.info(
                "Triggering job is not a child of a branch-indexed project; skipping",
                extra={"job": job.full_name, "kind": event.kind.value},
            )
            trace.advance(DispatchState.SKIPPED)
            return _outcome(event, trace, skip_reason=SkipReason.NOT_A_CHILD)

        prop = effective_property(parent)
        if prop is None:
            trace.advance(DispatchState.SKIPPED)
            return _outcome(event, trace, skip_reason=SkipReason.NO_PROPERTY)
        trace.advance(DispatchState.ANCESTRY_RESOLVED)

        verdict = prop.evaluate_filter(job.name)
        if verdict is FilterVerdict.EXCLUDED:
            logger.info("Job excluded by the exclude filter", extra={"job": job.name})
            trace.advance(DispatchState.SKIPPED)
            return _outcome(event, trace, skip_reason=SkipReason.EXCLUDED)
        if verdict is FilterVerdict.NOT_INCLUDED:
            logger.info("Job not included by the include filter", extra={"job": job.name})
            trace.advance(DispatchState.SKIPPED)
            return _outcome(event, trace, skip_reason=SkipReason.NOT_INCLUDED)
        trace.advance(DispatchState.FILTER_EVALUATED)

        kind = event.kind
        extra = prop.additional_parameters
        targets = prop.jobs_for(kind)
        prop.reconciler.ensure_all(
            targets, include_run_parameters=kind.includes_run_parameters, extra=extra
        )
        trace.advance(DispatchState.PARAMETERS_RECONCILED)

        info = resolve_pull_request_info(job, self._metadata_provider)
        run_number: int | None = None
        run_display_name: str | None = None
        if isinstance(event, RunDeleted):
            run_number = event.run_number
            run_display_name = event.run_display_name
        values = build_parameter_values(
            project_name=job.name,
            project_full_name=job.full_name,
            source_branch_name=info.source_branch_name,
            target_branch_name=info.target_branch_name,
            run_number=run_number,
            run_display_name=run_display_name,
            extra=extra,
        )

        scheduled: list[str] = []
        failed: list[str] = []
        for target in targets:
            if not target.buildable:
                logger.info(
                    "Target job does not accept parameterized builds; skipping",
                    extra={"target": target.full_name},
                )
                continue
            try:
                self._scheduler.schedule(target, QUIET_PERIOD, list(values))
            except Exception as e:
                logger.warning(
                    "Could not schedule triggered build",
                    extra={"target": target.full_name, "error": str(e)},
                )
                failed.append(target.full_name)
                continue
            scheduled.append(target.full_name)

        trace.advance(DispatchState.DISPATCHED)
        logger.info(
            "Trigger dispatched",
            extra={"job": job.full_name, "kind": kind.value, "scheduled": scheduled},
        )
        return _outcome(event, trace, scheduled=scheduled, failed=failed)


def _safe_full_name(event: LifecycleEvent) -> str:
    return str(getattr(event.job, "full_name", "<unknown>"))


def _outcome(
    event: LifecycleEvent,
    trace: DispatchTrace,
    *,
    skip_reason: SkipReason | None = None,
    scheduled: list[str] | None = None,
    failed: list[str] | None = None,
) -> DispatchOutcome:
    return DispatchOutcome(
        kind=event.kind,
        job_full_name=_safe_full_name(event),
        state=trace.state,
        skip_reason=skip_reason,
        scheduled=scheduled or [],
        failed=failed or [],
        history=list(trace.history),
    )
