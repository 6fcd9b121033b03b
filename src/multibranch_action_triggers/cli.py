"""Console script shim; the CLI lives in `multibranch_action_triggers.main`."""

from __future__ import annotations

from multibranch_action_triggers.main import main

__all__ = ["main"]


if __name__ == "__main__":
    raise SystemExit(main())
