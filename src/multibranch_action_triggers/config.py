"""Settings for the trigger engine.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

The GitHub token reuses `ORCHESTRATOR_GITHUB_TOKEN` so that one `.env` can serve
both the trigger engine and the orchestrator tooling around it.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from multibranch_action_triggers.host.github import DEFAULT_CHANGE_REQUEST_PREFIX


class TriggerSettings(BaseSettings):
    """Settings for the trigger engine.

    Environment variables:
    - LOG_LEVEL                  (optional)
    - TRIGGER_CONFIG_PATH        (optional)
    - TRIGGER_STATE_PATH         (optional)
    - ORCHESTRATOR_GITHUB_TOKEN  (optional)
    - GITHUB_BASE_URL            (optional)
    - GITHUB_REPOSITORY          (optional)
    - CHANGE_REQUEST_PREFIX      (optional)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `TriggerSettings(_env_file=path_to_env)`.
    """

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    trigger_config_path: Path = Field(
        default=Path("triggers.json"),
        validation_alias="TRIGGER_CONFIG_PATH",
        description="JSON file holding the trigger configuration",
    )

    trigger_state_path: Path = Field(
        default=Path("trigger_state"),
        validation_alias="TRIGGER_STATE_PATH",
        description="Directory where parameter declarations are persisted",
    )

    github_token: str = Field(
        default="",
        validation_alias="ORCHESTRATOR_GITHUB_TOKEN",
        description="GitHub token used to look up pull request branches",
    )
    github_base_url: str = Field(
        default="https://api.github.com",
        validation_alias="GITHUB_BASE_URL",
        description="GitHub API base URL (useful for GitHub Enterprise)",
    )
    github_repository: str = Field(
        default="",
        validation_alias="GITHUB_REPOSITORY",
        description="Repository ('owner/repo') whose pull requests back PR branch jobs",
    )

    change_request_prefix: str = Field(
        default=DEFAULT_CHANGE_REQUEST_PREFIX,
        validation_alias="CHANGE_REQUEST_PREFIX",
        description="Job name prefix that marks a pull request branch, e.g. 'PR-12'",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )

    @property
    def declarations_state_file(self) -> Path:
        """Path where parameter declarations are persisted."""

        return self.trigger_state_path / "declarations.json"

    @property
    def github_enabled(self) -> bool:
        return bool(self.github_token.strip() and self.github_repository.strip())
