"""Daybreak - unattended multi-day agent work under guardrails.

Two components:
- AutonomyGuardrails: budgets, escalation thresholds, irreversible-action
  approval and the kill switch
- PlanEngine: day-by-day schedules executed through a TaskExecutor, with
  compensating tasks after failures

Example:
    >>> from daybreak import AutonomyGuardrails, PlanEngine
    >>> engine = PlanEngine(AutonomyGuardrails())
    >>> plan = engine.create_plan("user-1", "ws-1", "Ship the beta", 5)
"""

__version__ = "0.1.0"

from daybreak.foundation.errors import DaybreakError, ErrorCode
from daybreak.planning import (
    AutoCompleteExecutor,
    AutonomousPlan,
    AutonomousTask,
    CallableExecutor,
    DailyProgressReport,
    ExecuteDayResult,
    PlanEngine,
    PlanStatus,
    SeedTask,
    TaskCompleted,
    TaskExecutor,
    TaskFailed,
    TaskStatus,
)
from daybreak.quality.guardrails import (
    AutonomyGuardrails,
    AutonomyUsage,
    Escalation,
    EscalationStatus,
    EscalationType,
    GuardrailEvaluation,
    GuardrailPolicy,
    ResourceBudget,
)

__all__ = [
    "__version__",
    # Errors
    "DaybreakError",
    "ErrorCode",
    # Guardrails
    "AutonomyGuardrails",
    "AutonomyUsage",
    "Escalation",
    "EscalationStatus",
    "EscalationType",
    "GuardrailEvaluation",
    "GuardrailPolicy",
    "ResourceBudget",
    # Planning
    "AutoCompleteExecutor",
    "AutonomousPlan",
    "AutonomousTask",
    "CallableExecutor",
    "DailyProgressReport",
    "ExecuteDayResult",
    "PlanEngine",
    "PlanStatus",
    "SeedTask",
    "TaskCompleted",
    "TaskExecutor",
    "TaskFailed",
    "TaskStatus",
]
