"""Branch metadata backed by GitHub pull requests.

Branch sources name change-request jobs ``PR-<number>``. For those jobs the pull
request is fetched to learn its head (origin) and base (target) branches; every
other job is a plain branch named after the job.
"""

from __future__ import annotations

import logging
import re

from github import Auth, Github
from github.Repository import Repository

from multibranch_action_triggers.host.model import BranchKind, BranchMetadata, JobHandle

logger = logging.getLogger(__name__)

DEFAULT_CHANGE_REQUEST_PREFIX = "PR-"


class GitHubBranchMetadataProvider:
    """Small wrapper around PyGithub for change-request branch lookups."""

    def __init__(
        self,
        *,
        token: str = "",
        repository: str,
        base_url: str = "https://api.github.com",
        change_request_prefix: str = DEFAULT_CHANGE_REQUEST_PREFIX,
        repo: Repository | None = None,
        github_api: Github | None = None,
    ) -> None:
        if not repository:
            raise ValueError("GitHub repository is required")

        self._repository_name = repository
        self._pr_name_re = re.compile(rf"^{re.escape(change_request_prefix)}(\d+)$")

        if repo is not None:
            self._repo = repo
            self._github = None
            logger.debug("Using injected Repository instance")
            return

        if not token:
            raise ValueError("GitHub token is required")
        auth = Auth.Token(token)
        self._github = github_api or Github(auth=auth, base_url=base_url)
        self._repo = self._github.get_repo(repository)
        logger.info(
            "Authenticated with GitHub and connected to repository", extra={"repo": repository}
        )

    @property
    def repository(self) -> str:
        return self._repository_name

    def pull_number_for(self, job_name: str) -> int | None:
        match = self._pr_name_re.match(job_name)
        if match is None:
            return None
        return int(match.group(1))

    def branch_metadata(self, job: JobHandle) -> BranchMetadata:
        pull_number = self.pull_number_for(job.name)
        if pull_number is None:
            return BranchMetadata.plain(job.name)

        try:
            pr = self._repo.get_pull(pull_number)
        except Exception as e:
            logger.warning(
                "Pull request lookup failed; treating job as a plain branch",
                extra={"repo": self._repository_name, "pull_number": pull_number, "error": str(e)},
            )
            return BranchMetadata.plain(job.name)

        logger.debug(
            "Pull request fetched",
            extra={
                "repo": self._repository_name,
                "pull_number": pull_number,
                "head": pr.head.ref,
                "base": pr.base.ref,
            },
        )
        return BranchMetadata(
            kind=BranchKind.CHANGE_REQUEST,
            branch_name=job.name,
            origin_name=pr.head.ref,
            target_name=pr.base.ref,
        )

    def close(self) -> None:
        if self._github is not None:
            self._github.close()
