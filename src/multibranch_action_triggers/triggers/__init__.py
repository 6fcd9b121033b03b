"""Branch lifecycle triggers.

This package holds the trigger domain:
- wildcard branch filters
- parameter declarations and values for triggered builds
- the trigger property attached to branch-indexed and organization containers
- dispatch of lifecycle events into scheduled builds
"""

from multibranch_action_triggers.triggers.dispatcher import (
    DispatchOutcome,
    TriggerDispatcher,
    effective_property,
)
from multibranch_action_triggers.triggers.events import (
    JobCreated,
    JobDeleted,
    LifecycleEvent,
    RunDeleted,
    TriggerKind,
)
from multibranch_action_triggers.triggers.filters import (
    BranchFilter,
    WildcardMatcher,
    compile_wildcards,
    convert_to_pattern,
)
from multibranch_action_triggers.triggers.listeners import TriggerListener
from multibranch_action_triggers.triggers.parameters import (
    AdditionalParameter,
    ParameterReconciler,
)
from multibranch_action_triggers.triggers.property import TriggerConfig, TriggerProperty
from multibranch_action_triggers.triggers.pull_request import PullRequestInfo

__all__ = [
    "AdditionalParameter",
    "BranchFilter",
    "DispatchOutcome",
    "JobCreated",
    "JobDeleted",
    "LifecycleEvent",
    "ParameterReconciler",
    "PullRequestInfo",
    "RunDeleted",
    "TriggerConfig",
    "TriggerDispatcher",
    "TriggerKind",
    "TriggerListener",
    "TriggerProperty",
    "WildcardMatcher",
    "compile_wildcards",
    "convert_to_pattern",
    "effective_property",
]
