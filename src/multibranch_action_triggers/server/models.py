"""Pydantic models for the REST event adapter."""

from __future__ import annotations

from pydantic import BaseModel, Field

from multibranch_action_triggers.triggers.dispatcher import DispatchOutcome


class JobEventRequest(BaseModel):
    job: str = Field(min_length=1, description="Full name of the branch job")


class RunDeletedRequest(JobEventRequest):
    run_number: int | None = Field(default=None, ge=1)
    run_display_name: str | None = None


class ApiOutcome(BaseModel):
    kind: str
    job: str
    state: str
    skip_reason: str | None = None
    scheduled: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)

    @classmethod
    def from_outcome(cls, outcome: DispatchOutcome) -> ApiOutcome:
        return cls(
            kind=outcome.kind.value,
            job=outcome.job_full_name,
            state=outcome.state.value,
            skip_reason=outcome.skip_reason.value if outcome.skip_reason else None,
            scheduled=outcome.scheduled,
            failed=outcome.failed,
        )


class FilterCheck(BaseModel):
    name: str
    include: str
    exclude: str
    verdict: str
    accepted: bool
