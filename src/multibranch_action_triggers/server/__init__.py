"""FastAPI adapter for multibranch-action-triggers.

Design intent:
- Keep trigger logic in `multibranch_action_triggers.triggers.*`
- Keep HTTP concerns (routing, request validation) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from multibranch_action_triggers.server.app import create_app
