"""Source/target branch names for the job that fired a trigger."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from multibranch_action_triggers.host.model import (
    BranchKind,
    BranchMetadata,
    BranchMetadataProvider,
    JobHandle,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PullRequestInfo:
    """Branch names for a change request, or a plain branch (empty target)."""

    source_branch_name: str
    target_branch_name: str = ""

    @property
    def is_change_request(self) -> bool:
        return bool(self.target_branch_name)

    @staticmethod
    def from_metadata(metadata: BranchMetadata) -> PullRequestInfo:
        if metadata.kind is BranchKind.CHANGE_REQUEST:
            return PullRequestInfo(
                source_branch_name=metadata.origin_name or "",
                target_branch_name=metadata.target_name or "",
            )
        return PullRequestInfo(source_branch_name=metadata.branch_name)


def resolve_pull_request_info(
    job: JobHandle, provider: BranchMetadataProvider | None
) -> PullRequestInfo:
    """Ask the branch source about ``job``; fall back to its name as a plain branch."""

    if provider is None:
        return PullRequestInfo(source_branch_name=job.name)
    try:
        metadata = provider.branch_metadata(job)
    except Exception as e:
        logger.warning(
            "Branch metadata lookup failed; treating job as a plain branch",
            extra={"job": job.full_name, "error": str(e)},
        )
        return PullRequestInfo(source_branch_name=job.name)
    return PullRequestInfo.from_metadata(metadata)
