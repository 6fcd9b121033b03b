"""Entry points called by the branch indexing component.

Nothing raised here may reach the caller: a failing trigger must not break an
indexing run.
"""

from __future__ import annotations

import logging

from multibranch_action_triggers.host.model import Container, JobHandle, Run
from multibranch_action_triggers.triggers.dispatcher import DispatchOutcome, TriggerDispatcher
from multibranch_action_triggers.triggers.events import JobCreated, JobDeleted, RunDeleted
from multibranch_action_triggers.triggers.inheritance import PropertyPropagator

logger = logging.getLogger(__name__)


class TriggerListener:
    def __init__(
        self, dispatcher: TriggerDispatcher, propagator: PropertyPropagator | None = None
    ) -> None:
        self.dispatcher = dispatcher
        self.propagator = propagator or PropertyPropagator()

    def on_created(self, job: JobHandle) -> DispatchOutcome | None:
        try:
            return self.dispatcher.dispatch(JobCreated(job))
        except Exception:
            logger.exception("on_created handler failed", extra={"job": job.full_name})
            return None

    def on_deleted(self, job: JobHandle) -> list[DispatchOutcome]:
        """Fire the delete trigger, then the run-delete trigger for each remaining run."""

        outcomes: list[DispatchOutcome] = []
        try:
            outcomes.append(self.dispatcher.dispatch(JobDeleted(job)))
            for run in list(job.runs):
                outcomes.append(
                    self.dispatcher.dispatch(
                        RunDeleted(job, run_number=run.number, run_display_name=run.display_name)
                    )
                )
        except Exception:
            logger.exception("on_deleted handler failed", extra={"job": job.full_name})
        return outcomes

    def on_run_deleted(self, job: JobHandle, run: Run) -> DispatchOutcome | None:
        try:
            return self.dispatcher.dispatch(
                RunDeleted(job, run_number=run.number, run_display_name=run.display_name)
            )
        except Exception:
            logger.exception("on_run_deleted handler failed", extra={"job": job.full_name})
            return None

    def on_container_created(self, container: Container) -> None:
        try:
            self.propagator.on_container_created(container)
        except Exception:
            logger.exception(
                "on_container_created handler failed", extra={"container": container.full_name}
            )

    def on_property_updated(self, container: Container) -> None:
        try:
            self.propagator.on_property_updated(container)
        except Exception:
            logger.exception(
                "on_property_updated handler failed", extra={"container": container.full_name}
            )
