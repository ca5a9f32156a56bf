"""Daybreak Error System.

Provides structured error handling with:
- Numeric error codes for programmatic handling
- User-friendly messages
- Recovery hints for operators
- Context for debugging

Guardrail denials are never errors. They come back as decisions from
``AutonomyGuardrails.evaluate_action``. A ``DaybreakError`` means the caller
referenced something that does not exist or asked for a transition the
current state forbids, so re-fetch state before retrying.
"""


from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Numeric error codes organized by category.

    Format: XYYY where X = category, YYY = specific error

    Categories:
        1xxx - Plan errors
        2xxx - Task errors
        3xxx - Escalation errors
        4xxx - Safety errors
        5xxx - Configuration errors
    """

    # 1xxx - Plan Errors
    PLAN_NOT_FOUND = 1001
    PLAN_TERMINAL = 1002

    # 2xxx - Task Errors
    TASK_NOT_FOUND = 2001
    TASK_NOT_SKIPPABLE = 2002

    # 3xxx - Escalation Errors
    ESCALATION_NOT_FOUND = 3001
    ESCALATION_ALREADY_RESOLVED = 3002

    # 4xxx - Safety Errors
    KILL_SWITCH_ACTIVE = 4001

    # 5xxx - Configuration Errors
    CONFIG_INVALID = 5001
    MANIFEST_INVALID = 5002

    @property
    def category(self) -> str:
        """Get the error category name."""
        prefix = self.value // 1000
        return {
            1: "plan",
            2: "task",
            3: "escalation",
            4: "safety",
            5: "config",
        }.get(prefix, "unknown")

    @property
    def is_recoverable(self) -> bool:
        """Whether this error type is typically recoverable."""
        non_recoverable = {
            ErrorCode.PLAN_TERMINAL,
            ErrorCode.CONFIG_INVALID,
            ErrorCode.MANIFEST_INVALID,
        }
        return self not in non_recoverable


# Human-readable error messages
ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.PLAN_NOT_FOUND: "Autonomous plan {plan_id} not found.",
    ErrorCode.PLAN_TERMINAL: (
        "Plan {plan_id} is {status} and cannot execute additional days."
    ),
    ErrorCode.TASK_NOT_FOUND: "Task {task_id} not found in plan {plan_id}.",
    ErrorCode.TASK_NOT_SKIPPABLE: "Task {task_id} is {status} and cannot be skipped.",
    ErrorCode.ESCALATION_NOT_FOUND: "Escalation {escalation_id} not found.",
    ErrorCode.ESCALATION_ALREADY_RESOLVED: (
        "Escalation {escalation_id} is already {status}."
    ),
    ErrorCode.KILL_SWITCH_ACTIVE: (
        "Kill switch is active. Clear kill switch before resuming."
    ),
    ErrorCode.CONFIG_INVALID: "Invalid configuration for '{key}': {detail}",
    ErrorCode.MANIFEST_INVALID: "Invalid plan manifest '{path}': {detail}",
}


# Recovery hints for operators
RECOVERY_HINTS: dict[ErrorCode, list[str]] = {
    ErrorCode.PLAN_NOT_FOUND: [
        "List plans to find the correct id",
        "Plans live in process memory; recreate the plan after a restart",
    ],
    ErrorCode.PLAN_TERMINAL: [
        "Check the plan status before calling execute_day",
        "Create a new plan to continue the goal",
    ],
    ErrorCode.ESCALATION_NOT_FOUND: [
        "List pending escalations to find the correct id",
    ],
    ErrorCode.ESCALATION_ALREADY_RESOLVED: [
        "Re-fetch escalations; another reviewer resolved this one",
    ],
    ErrorCode.KILL_SWITCH_ACTIVE: [
        "Clear the kill switch once the incident is handled",
    ],
    ErrorCode.CONFIG_INVALID: [
        "Check .daybreak/config.yaml for typos",
        "Run 'daybreak policy init' to write a fresh default file",
    ],
    ErrorCode.MANIFEST_INVALID: [
        "A manifest needs at least a 'goal' and a number of 'days'",
        "Day keys under 'tasks' are 1-based day numbers",
    ],
}


class DaybreakError(Exception):
    """Base error type for all Daybreak errors.

    Provides structured error information for:
    - Programmatic error handling (code)
    - User-friendly display (message)
    - Operator guidance (recovery_hints)
    - Debugging (context, cause)

    Example:
        >>> err = DaybreakError(
        ...     code=ErrorCode.PLAN_NOT_FOUND,
        ...     context={"plan_id": "plan-0001"},
        ... )
        >>> print(err)
        [DB-1001] Autonomous plan plan-0001 not found.
    """

    def __init__(
        self,
        code: ErrorCode,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        self.code = code
        self.context = context or {}
        self.cause = cause
        super().__init__(str(self))

    @property
    def message(self) -> str:
        """Get the formatted user-friendly message."""
        template = ERROR_MESSAGES.get(self.code, "An error occurred: {detail}")
        try:
            return template.format(**self.context)
        except KeyError:
            return template

    @property
    def recovery_hints(self) -> list[str]:
        """Get recovery suggestions for this error."""
        hints = RECOVERY_HINTS.get(self.code, [])
        formatted = []
        for hint in hints:
            try:
                formatted.append(hint.format(**self.context))
            except KeyError:
                formatted.append(hint)
        return formatted

    @property
    def is_recoverable(self) -> bool:
        """Whether this error is typically recoverable."""
        return self.code.is_recoverable

    @property
    def category(self) -> str:
        """Get the error category."""
        return self.code.category

    @property
    def error_id(self) -> str:
        """Get the error ID string (e.g., 'DB-1001')."""
        return f"DB-{self.code.value}"

    def __str__(self) -> str:
        return f"[{self.error_id}] {self.message}"

    def __repr__(self) -> str:
        return f"DaybreakError(code={self.code!r}, context={self.context!r})"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dict for logging/API responses."""
        return {
            "error_id": self.error_id,
            "code": self.code.value,
            "category": self.category,
            "message": self.message,
            "recoverable": self.is_recoverable,
            "recovery_hints": self.recovery_hints,
            "context": self.context,
        }


# Convenience factory functions

def plan_not_found(plan_id: str) -> DaybreakError:
    """Create a PLAN_NOT_FOUND error."""
    return DaybreakError(code=ErrorCode.PLAN_NOT_FOUND, context={"plan_id": plan_id})


def plan_terminal(plan_id: str, status: str) -> DaybreakError:
    """Create a PLAN_TERMINAL error."""
    return DaybreakError(
        code=ErrorCode.PLAN_TERMINAL,
        context={"plan_id": plan_id, "status": status},
    )


def task_error(
    code: ErrorCode,
    plan_id: str,
    task_id: str,
    status: str = "",
) -> DaybreakError:
    """Create a task-related error."""
    return DaybreakError(
        code=code,
        context={"plan_id": plan_id, "task_id": task_id, "status": status},
    )


def escalation_error(
    code: ErrorCode,
    escalation_id: str,
    status: str = "",
) -> DaybreakError:
    """Create an escalation-related error."""
    return DaybreakError(
        code=code,
        context={"escalation_id": escalation_id, "status": status},
    )


def config_error(
    code: ErrorCode,
    key: str = "",
    detail: str = "",
    path: str = "",
    cause: Exception | None = None,
) -> DaybreakError:
    """Create a configuration error."""
    return DaybreakError(
        code=code,
        context={"key": key, "detail": detail, "path": path},
        cause=cause,
    )
