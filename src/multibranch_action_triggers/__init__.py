"""Multibranch Action Triggers.

Runs downstream jobs when branch indexing creates or deletes a branch job, or
when a run of a branch job is deleted:
- wildcard include/exclude filters over branch job names
- parameter declarations reconciled on every target job
- configuration inherited from organization folders
"""

__version__ = "0.1.0"

from multibranch_action_triggers.engine import TriggerEngine

__all__ = ["__version__", "TriggerEngine"]
