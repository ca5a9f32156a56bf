"""Budget Tracking for Autonomy Guardrails.

Tracks per-plan resource usage and checks proposed actions against the
plan's hard budget, its timebox and its escalation threshold.
"""

from datetime import datetime

from daybreak.quality.guardrails.types import (
    AutonomyUsage,
    BudgetCheckResult,
    GuardrailPolicy,
)


def budget_fraction(value: float, maximum: float) -> float:
    """Fraction of ``maximum`` consumed; a non-positive budget counts as full."""
    if maximum <= 0:
        return 1.0
    return value / maximum


class BudgetTracker:
    """Track plan usage and enforce resource budgets.

    Usage is additive and never decremented. Each plan also carries the
    timestamp it was (last) registered at, which anchors its wall-clock
    runtime.
    """

    def __init__(self) -> None:
        self._usage: dict[str, AutonomyUsage] = {}
        self._started_at: dict[str, datetime] = {}

    def start(self, plan_id: str, now: datetime) -> None:
        """Anchor the plan's runtime clock; keeps any usage already recorded."""
        self._started_at[plan_id] = now
        self._usage.setdefault(plan_id, AutonomyUsage())

    def usage(self, plan_id: str) -> AutonomyUsage:
        """Current usage for a plan (zero if never recorded)."""
        return self._usage.get(plan_id, AutonomyUsage())

    def record(self, plan_id: str, delta: AutonomyUsage) -> AutonomyUsage:
        """Merge ``delta`` into the plan's usage and return the new total."""
        updated = self.usage(plan_id).merge(delta)
        self._usage[plan_id] = updated
        return updated

    def elapsed_hours(self, plan_id: str, now: datetime, runtime_minutes: float) -> float:
        """Larger of wall-clock hours since start and reported runtime hours."""
        reported = runtime_minutes / 60
        started_at = self._started_at.get(plan_id)
        if started_at is None:
            return reported
        by_clock = max(0.0, (now - started_at).total_seconds() / 3600)
        return max(by_clock, reported)

    def check(
        self,
        plan_id: str,
        policy: GuardrailPolicy,
        estimate: AutonomyUsage | None,
        now: datetime,
    ) -> BudgetCheckResult:
        """Check whether an action with ``estimate`` fits the policy.

        Args:
            plan_id: Plan the action belongs to
            policy: The plan's guardrail policy
            estimate: Estimated usage of the action (None = nothing)
            now: Evaluation time for the timebox

        Returns:
            BudgetCheckResult indicating pass/fail and which limit tripped
        """
        budget = policy.resource_budget
        projected = self.usage(plan_id).merge(estimate)

        hard_exceeded = (
            projected.tokens_used > budget.max_tokens
            or projected.api_calls > budget.max_api_calls
            or projected.connector_actions > budget.max_connector_actions
        )
        elapsed = self.elapsed_hours(plan_id, now, projected.runtime_minutes)
        over_timebox = elapsed >= budget.max_runtime_hours

        if over_timebox:
            return BudgetCheckResult(
                passed=False,
                projected=projected,
                limit_type="timebox",
                reason="Autonomous session exceeded maximum runtime.",
            )
        if hard_exceeded:
            return BudgetCheckResult(
                passed=False,
                projected=projected,
                limit_type="budget",
                reason="Resource budget exceeded for autonomous plan.",
            )

        usage_pct = max(
            budget_fraction(projected.tokens_used, budget.max_tokens),
            budget_fraction(projected.api_calls, budget.max_api_calls),
            budget_fraction(projected.connector_actions, budget.max_connector_actions),
        )
        if usage_pct >= policy.escalation_threshold_pct:
            return BudgetCheckResult(
                passed=False,
                projected=projected,
                limit_type="threshold",
                reason=(
                    f"Plan crossed {round(policy.escalation_threshold_pct * 100)}% "
                    "of resource budget."
                ),
                usage_pct=usage_pct,
            )

        return BudgetCheckResult(passed=True, projected=projected, usage_pct=usage_pct)
