"""Schedule synthesis: default daily tasks and compensating work.

Role-aware phrasing per day position: the first day clarifies constraints,
the last day synthesizes outcomes, every day in between executes a
numbered milestone.
"""

import math

from daybreak.foundation.config import MAX_DURATION_DAYS


def default_task_title(goal: str, day_index: int, duration_days: int) -> str:
    if day_index == 0:
        return f"Clarify constraints for {goal}"
    if day_index == duration_days - 1:
        return f"Synthesize outcomes for {goal}"
    return f"Execute milestone {day_index + 1} for {goal}"


def default_task_description(goal: str, day_index: int, duration_days: int) -> str:
    if day_index == 0:
        return (
            f'Define concrete success criteria, dependencies, and risk boundaries for "{goal}".'
        )
    if day_index == duration_days - 1:
        return (
            f"Review progress, consolidate outputs, and prepare next-week continuation "
            f'for "{goal}".'
        )
    return f'Advance the daily milestone for "{goal}" and capture measurable output.'


COMPENSATING_DESCRIPTION = (
    "Compensate for previous failure, restore baseline progress, and unblock downstream tasks."
)


def compensating_title(failed_day_index: int) -> str:
    """Title of the recovery task for a failure on ``failed_day_index`` (0-based)."""
    return f"Recovery loop for day {failed_day_index + 1}"


def compensating_day(failed_day_index: int, duration_days: int) -> int:
    """Day the recovery task lands on: the next day, or the last day."""
    return min(duration_days - 1, failed_day_index + 1)


def clamp_duration(duration_days: float, max_duration_days: int) -> int:
    """Round and clamp a requested duration to ``[1, max_duration_days]``.

    The ceiling is capped at ``MAX_DURATION_DAYS`` whatever the config says.
    """
    ceiling = min(max_duration_days, MAX_DURATION_DAYS)
    return max(1, min(ceiling, math.floor(duration_days + 0.5)))
