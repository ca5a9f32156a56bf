"""Autonomous planning - multi-day plans executed under guardrails.

Components:
- PlanEngine: schedule synthesis, guarded day execution, failure adaptation
- TaskExecutor: the seam real work plugs into (AutoCompleteExecutor for dry runs)
- PlanManifest: YAML description of a plan for the CLI
"""

from daybreak.planning.engine import PlanEngine
from daybreak.planning.executor import (
    AutoCompleteExecutor,
    CallableExecutor,
    TaskCompleted,
    TaskExecutor,
    TaskFailed,
    TaskOutcome,
)
from daybreak.planning.manifest import PlanManifest, load_manifest, parse_manifest
from daybreak.planning.types import (
    AutonomousPlan,
    AutonomousTask,
    DailyProgressReport,
    ExecuteDayResult,
    PlanStatus,
    SeedTask,
    TaskStatus,
)

__all__ = [
    # Engine
    "PlanEngine",
    # Executors
    "AutoCompleteExecutor",
    "CallableExecutor",
    "TaskCompleted",
    "TaskExecutor",
    "TaskFailed",
    "TaskOutcome",
    # Manifests
    "PlanManifest",
    "load_manifest",
    "parse_manifest",
    # Types
    "AutonomousPlan",
    "AutonomousTask",
    "DailyProgressReport",
    "ExecuteDayResult",
    "PlanStatus",
    "SeedTask",
    "TaskStatus",
]
