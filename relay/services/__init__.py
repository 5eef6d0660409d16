"""Release and sync engine.

Services receive their collaborators (backend, console, prompter, options)
explicitly and never read global state.
"""

from relay.services.divergence import DivergenceInfo, compare
from relay.services.errors import RelayError
from relay.services.options import ExecutionOptions, Prompter
from relay.services.plan import (
    CommitSelection,
    ReleaseDraft,
    ReleasePlan,
    SyncPlan,
    SyncRequest,
)
from relay.services.release import (
    ConflictHandler,
    ReleaseExecutor,
    ReleaseRun,
    ReleaseState,
)
from relay.services.safety import SafetyAnalyzer, SafetyReport, print_safety_report
from relay.services.selection import parse_selection
from relay.services.sync import SyncRun, SyncState, SyncWorkflow

__all__ = [
    "CommitSelection",
    "ConflictHandler",
    "DivergenceInfo",
    "ExecutionOptions",
    "Prompter",
    "RelayError",
    "ReleaseDraft",
    "ReleaseExecutor",
    "ReleasePlan",
    "ReleaseRun",
    "ReleaseState",
    "SafetyAnalyzer",
    "SafetyReport",
    "SyncPlan",
    "SyncRequest",
    "SyncRun",
    "SyncState",
    "SyncWorkflow",
    "compare",
    "parse_selection",
    "print_safety_report",
]
