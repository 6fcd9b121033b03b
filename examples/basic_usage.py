#!/usr/bin/env python3
"""Programmatic trigger example.

This demonstrates using the engine components directly:

* build an in-memory job tree with a branch-indexed project
* attach a trigger property from a JSON config file (or the defaults below)
* simulate branch indexing creating and deleting a branch job
* print the builds that were scheduled

Declarations written to target jobs are persisted under `TRIGGER_STATE_PATH`.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Sequence

from multibranch_action_triggers.config import TriggerSettings
from multibranch_action_triggers.engine import TriggerEngine
from multibranch_action_triggers.host.memory import RecordingBuildScheduler
from multibranch_action_triggers.logging import configure_logging
from multibranch_action_triggers.triggers.property import TriggerConfig, load_trigger_config


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Simulate branch events (programmatic example).")
    parser.add_argument("--branch", default="feature-x", help="Branch job name to create")
    parser.add_argument(
        "--config",
        default=None,
        help="Trigger config JSON (optional; defaults to a built-in example)",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = TriggerSettings()
    configure_logging(settings.log_level)

    engine = TriggerEngine.from_settings(settings)
    registry = engine.registry
    ops = registry.create_folder("ops")
    registry.create_job("notify-created", parent=ops)
    registry.create_job("cleanup-environment", parent=ops)
    project = registry.create_branch_project("app")

    if args.config:
        config = load_trigger_config(Path(args.config))
    else:
        config = TriggerConfig(
            create_jobs_to_trigger="ops/notify-created",
            delete_jobs_to_trigger="ops/cleanup-environment",
            branch_exclude_filter="master",
        )
    engine.attach(project, engine.create_property(config))

    job = registry.create_job(args.branch, parent=project)
    job.add_run()
    registry.delete_job(job)

    scheduler = engine.scheduler
    assert isinstance(scheduler, RecordingBuildScheduler)
    for build in scheduler.builds:
        print(f"{build.job_full_name}: {build.parameter_map}")
    print(f"Declarations persisted to: {settings.declarations_state_file}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
