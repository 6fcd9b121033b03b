"""CLI entrypoint for inspecting trigger configuration and filters."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from multibranch_action_triggers import __version__
from multibranch_action_triggers.config import TriggerSettings
from multibranch_action_triggers.logging import configure_logging
from multibranch_action_triggers.triggers.filters import (
    DEFAULT_EXCLUDE_FILTER,
    DEFAULT_INCLUDE_FILTER,
    BranchFilter,
    convert_to_pattern,
)
from multibranch_action_triggers.triggers.property import load_trigger_config

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="multibranch-triggers",
        description="Inspect branch lifecycle trigger configuration",
    )
    parser.add_argument(
        "--version", action="version", version=f"multibranch-action-triggers {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    pattern = subparsers.add_parser(
        "pattern", help="Print the regular expression for a wildcard filter expression"
    )
    pattern.add_argument("expression", help="Space-separated wildcards, e.g. 'master release-*'")

    check_filter = subparsers.add_parser(
        "check-filter", help="Show which branch names pass an include/exclude filter pair"
    )
    check_filter.add_argument("--include", default=DEFAULT_INCLUDE_FILTER, help="Include filter")
    check_filter.add_argument("--exclude", default=DEFAULT_EXCLUDE_FILTER, help="Exclude filter")
    check_filter.add_argument("names", nargs="+", help="Branch job names to evaluate")

    validate_config = subparsers.add_parser(
        "validate-config", help="Validate a trigger configuration JSON file"
    )
    validate_config.add_argument(
        "path",
        nargs="?",
        default=None,
        help="Config file (defaults to TRIGGER_CONFIG_PATH)",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = TriggerSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level)

    try:
        if args.command == "pattern":
            print(convert_to_pattern(args.expression))
            return 0

        if args.command == "check-filter":
            branch_filter = BranchFilter.from_expressions(args.include, args.exclude)
            for name in args.names:
                verdict = branch_filter.evaluate(name)
                label = "ACCEPT" if branch_filter.accepts(name) else "REJECT"
                print(f"{label}\t{name}\t{verdict.value}")
            return 0

        if args.command == "validate-config":
            path = Path(args.path) if args.path else settings.trigger_config_path
            try:
                config = load_trigger_config(path)
            except ValidationError as e:
                print(f"Invalid trigger configuration in {path}:", file=sys.stderr)
                print(e, file=sys.stderr)
                return 2
            print(config.model_dump_json(indent=2))
            return 0

        logger.error("Unknown command", extra={"command": args.command})
        return 2

    except FileNotFoundError as e:
        print(f"File not found: {e.filename}", file=sys.stderr)
        return 2

    except Exception:
        logger.exception("Command failed")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
