"""Resolve comma-separated job full names against the live job registry."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from multibranch_action_triggers.host.model import JobHandle, JobRegistry

logger = logging.getLogger(__name__)


def split_job_names(full_names: str | None) -> list[str]:
    return [token.strip() for token in (full_names or "").split(",") if token.strip()]


def join_job_names(jobs: Iterable[JobHandle]) -> str:
    return ",".join(job.full_name for job in jobs)


class JobResolver:
    """Narrow a list of job names to the jobs that currently exist.

    Unknown names are dropped without error. Results follow token order and a
    name listed twice resolves twice.
    """

    def __init__(self, registry: JobRegistry) -> None:
        self._registry = registry

    def resolve(self, full_names: str | None) -> list[JobHandle]:
        tokens = split_job_names(full_names)
        if not tokens:
            return []

        by_name: dict[str, list[JobHandle]] = {}
        for job in self._registry.list_all_jobs():
            by_name.setdefault(job.full_name.strip(), []).append(job)

        resolved: list[JobHandle] = []
        for token in tokens:
            matches = by_name.get(token)
            if not matches:
                logger.debug("Job not found; skipping", extra={"job": token})
                continue
            resolved.extend(matches)
        return resolved
