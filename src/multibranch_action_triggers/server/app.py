"""FastAPI app factory.

Lets an external branch indexer deliver lifecycle events over HTTP. Endpoints
are thin wrappers over :class:`TriggerListener`; jobs are looked up by full
name in the engine's in-memory registry.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException

from multibranch_action_triggers import __version__
from multibranch_action_triggers.engine import TriggerEngine
from multibranch_action_triggers.host.memory import InMemoryJobRegistry, Job
from multibranch_action_triggers.server.models import (
    ApiOutcome,
    FilterCheck,
    JobEventRequest,
    RunDeletedRequest,
)
from multibranch_action_triggers.triggers.events import RunDeleted
from multibranch_action_triggers.triggers.filters import (
    DEFAULT_EXCLUDE_FILTER,
    DEFAULT_INCLUDE_FILTER,
    BranchFilter,
)

logger = logging.getLogger(__name__)


def create_app(engine: TriggerEngine | None = None) -> FastAPI:
    engine = engine or TriggerEngine()
    if not isinstance(engine.registry, InMemoryJobRegistry):
        raise TypeError("The REST adapter requires an in-memory job registry")
    registry: InMemoryJobRegistry = engine.registry

    app = FastAPI(
        title="Multibranch Action Triggers",
        version=__version__,
        description="Branch lifecycle events in, triggered builds out.",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )
    app.state.engine = engine

    def _job_or_404(full_name: str) -> Job:
        job = registry.get_job(full_name)
        if job is None:
            raise HTTPException(status_code=404, detail=f"Job not found: {full_name}")
        return job

    @app.get("/api/v1/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    @app.post("/api/v1/events/created", response_model=list[ApiOutcome])
    def job_created(req: JobEventRequest) -> list[ApiOutcome]:
        outcome = engine.listener.on_created(_job_or_404(req.job))
        return [ApiOutcome.from_outcome(outcome)] if outcome is not None else []

    @app.post("/api/v1/events/deleted", response_model=list[ApiOutcome])
    def job_deleted(req: JobEventRequest) -> list[ApiOutcome]:
        outcomes = engine.listener.on_deleted(_job_or_404(req.job))
        return [ApiOutcome.from_outcome(o) for o in outcomes]

    @app.post("/api/v1/events/run-deleted", response_model=list[ApiOutcome])
    def run_deleted(req: RunDeletedRequest) -> list[ApiOutcome]:
        event = RunDeleted(
            _job_or_404(req.job),
            run_number=req.run_number,
            run_display_name=req.run_display_name,
        )
        return [ApiOutcome.from_outcome(engine.dispatcher.dispatch(event))]

    @app.get("/api/v1/filters/check", response_model=FilterCheck)
    def check_filter(
        name: str,
        include: str = DEFAULT_INCLUDE_FILTER,
        exclude: str = DEFAULT_EXCLUDE_FILTER,
    ) -> FilterCheck:
        branch_filter = BranchFilter.from_expressions(include, exclude)
        verdict = branch_filter.evaluate(name)
        return FilterCheck(
            name=name,
            include=include,
            exclude=exclude,
            verdict=verdict.value,
            accepted=branch_filter.accepts(name),
        )

    logger.debug("REST adapter created")
    return app
