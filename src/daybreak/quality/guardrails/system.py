"""Guardrail System Orchestrator for Autonomy Guardrails.

The single authority deciding whether a proposed action under a plan may
proceed. Owns plan policies, running usage, pause state, approved
irreversible actions and the kill switch.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from daybreak.foundation.clock import Clock, IdGenerator, utc_now, uuid_ids
from daybreak.quality.guardrails.budget import BudgetTracker
from daybreak.quality.guardrails.escalation import EscalationLedger
from daybreak.quality.guardrails.types import (
    AutonomyUsage,
    Escalation,
    EscalationDecision,
    EscalationStatus,
    EscalationType,
    GuardrailEvaluation,
    GuardrailPolicy,
)

logger = logging.getLogger(__name__)

_DEFAULT_KILL_REASON = "manual halt"


class AutonomyGuardrails:
    """Main guardrail system.

    Coordinates:
    - BudgetTracker: usage accounting, hard budget, timebox, threshold
    - EscalationLedger: idempotent escalations awaiting review

    Construct one instance per process (or per test) and pass it to the
    PlanEngine; the kill switch is state on this instance.

    Example:
        >>> guardrails = AutonomyGuardrails()
        >>> guardrails.register_plan("plan-1", GuardrailPolicy())
        >>> decision = guardrails.evaluate_action("plan-1", "task-1")
        >>> decision.allow
        True
    """

    def __init__(
        self,
        *,
        clock: Clock = utc_now,
        ids: IdGenerator = uuid_ids,
        on_escalate: Callable[[Escalation], None] | None = None,
    ) -> None:
        self._clock = clock
        self.budget = BudgetTracker()
        self.escalations = EscalationLedger(clock=clock, ids=ids, on_escalate=on_escalate)
        self._policies: dict[str, GuardrailPolicy] = {}
        self._paused: set[str] = set()
        self._approved_irreversible: dict[str, set[str]] = {}
        self._kill_switch = False
        self._kill_switch_reason = ""

    # -------------------------------------------------------------------------
    # Plans & usage
    # -------------------------------------------------------------------------

    def register_plan(
        self,
        plan_id: str,
        policy: GuardrailPolicy,
        now: datetime | None = None,
    ) -> None:
        """Associate a policy with a plan.

        Re-registering replaces the policy and restarts the runtime clock but
        keeps accumulated usage.
        """
        self._policies[plan_id] = policy
        self.budget.start(plan_id, now or self._clock())
        logger.debug("Registered guardrail policy for plan %s: %s", plan_id, policy)

    def get_policy(self, plan_id: str) -> GuardrailPolicy | None:
        return self._policies.get(plan_id)

    def get_usage(self, plan_id: str) -> AutonomyUsage:
        return self.budget.usage(plan_id)

    def record_usage(self, plan_id: str, delta: AutonomyUsage) -> AutonomyUsage:
        """Fold executed usage into the plan's running total."""
        return self.budget.record(plan_id, delta)

    # -------------------------------------------------------------------------
    # Decision point
    # -------------------------------------------------------------------------

    def evaluate_action(
        self,
        plan_id: str,
        action_id: str,
        irreversible: bool = False,
        estimated_usage: AutonomyUsage | None = None,
        now: datetime | None = None,
    ) -> GuardrailEvaluation:
        """Decide whether an action may proceed.

        Checks, first match wins:
        1. Kill switch
        2. Unmanaged plan (no policy) is allowed
        3. Irreversible action not yet approved
        4. Hard budget / timebox
        5. Escalation threshold
        6. Plan still paused for another reason

        Denials raise (or reuse) an escalation and pause the plan. Never raises.
        """
        now = now or self._clock()

        if self._kill_switch:
            escalation = self.escalations.ensure(
                plan_id,
                EscalationType.KILL_SWITCH,
                f"Kill switch active: {self._kill_switch_reason or _DEFAULT_KILL_REASON}",
                {"action_id": action_id},
                now=now,
            )
            self._paused.add(plan_id)
            return GuardrailEvaluation(
                allow=False, blocked_by_kill_switch=True, escalation=escalation
            )

        policy = self._policies.get(plan_id)
        if policy is None:
            return GuardrailEvaluation(allow=True)

        if irreversible and not self._is_irreversible_approved(plan_id, action_id):
            escalation = self.escalations.ensure(
                plan_id,
                EscalationType.IRREVERSIBLE,
                "Irreversible action requires explicit user approval.",
                {"action_id": action_id},
                now=now,
            )
            return self._deny(plan_id, escalation)

        check = self.budget.check(plan_id, policy, estimated_usage, now)
        if not check.passed:
            if check.limit_type == "threshold":
                escalation = self.escalations.ensure(
                    plan_id,
                    EscalationType.BUDGET,
                    check.reason,
                    {"action_id": action_id, "usage_pct": round(check.usage_pct, 4)},
                    now=now,
                )
            else:
                escalation = self.escalations.ensure(
                    plan_id,
                    (
                        EscalationType.TIMEBOX
                        if check.limit_type == "timebox"
                        else EscalationType.BUDGET
                    ),
                    check.reason,
                    {
                        "action_id": action_id,
                        "tokens_used": check.projected.tokens_used,
                        "api_calls": check.projected.api_calls,
                        "connector_actions": check.projected.connector_actions,
                    },
                    now=now,
                )
            return self._deny(plan_id, escalation)

        allow = plan_id not in self._paused
        logger.debug("Action %s on plan %s: allow=%s", action_id, plan_id, allow)
        return GuardrailEvaluation(allow=allow)

    def _deny(self, plan_id: str, escalation: Escalation) -> GuardrailEvaluation:
        self._paused.add(plan_id)
        return GuardrailEvaluation(allow=False, escalation=escalation)

    # -------------------------------------------------------------------------
    # Escalations
    # -------------------------------------------------------------------------

    def resolve_escalation(
        self,
        escalation_id: str,
        decision: EscalationDecision,
        reviewer_user_id: str,
        now: datetime | None = None,
    ) -> Escalation:
        """Approve or reject a pending escalation.

        Approving an irreversible escalation whitelists its action id for the
        plan. The plan un-pauses once nothing is pending and the kill switch
        is off.

        Raises:
            DaybreakError: Unknown escalation id or escalation not pending
        """
        resolved = self.escalations.resolve(escalation_id, decision, reviewer_user_id, now)

        if (
            resolved.type is EscalationType.IRREVERSIBLE
            and resolved.status is EscalationStatus.APPROVED
            and resolved.action_id
        ):
            self._approved_irreversible.setdefault(resolved.plan_id, set()).add(
                resolved.action_id
            )

        if self.escalations.has_pending(resolved.plan_id):
            self._paused.add(resolved.plan_id)
        elif not self._kill_switch:
            self._paused.discard(resolved.plan_id)

        return resolved

    def list_escalations(
        self,
        plan_id: str | None = None,
        status: EscalationStatus | None = None,
    ) -> list[Escalation]:
        """List escalations, newest first."""
        return self.escalations.list_escalations(plan_id, status)

    # -------------------------------------------------------------------------
    # Kill switch
    # -------------------------------------------------------------------------

    def activate_kill_switch(self, reason: str, now: datetime | None = None) -> None:
        """Emergency stop: pause every registered plan."""
        now = now or self._clock()
        self._kill_switch = True
        self._kill_switch_reason = reason.strip() or _DEFAULT_KILL_REASON
        logger.warning("Kill switch activated: %s", self._kill_switch_reason)

        for plan_id in self._policies:
            self._paused.add(plan_id)
            self.escalations.ensure(
                plan_id,
                EscalationType.KILL_SWITCH,
                f"Kill switch active: {self._kill_switch_reason}",
                {"activated_at": now.isoformat()},
                now=now,
            )

    def clear_kill_switch(self) -> None:
        """Lift the emergency stop; plans with pending escalations stay paused."""
        self._kill_switch = False
        self._kill_switch_reason = ""
        logger.warning("Kill switch cleared")

        for plan_id in self._policies:
            if not self.escalations.has_pending(plan_id):
                self._paused.discard(plan_id)

    def is_kill_switch_active(self) -> bool:
        return self._kill_switch

    @property
    def kill_switch_reason(self) -> str:
        return self._kill_switch_reason

    def is_plan_paused(self, plan_id: str) -> bool:
        return plan_id in self._paused

    def _is_irreversible_approved(self, plan_id: str, action_id: str) -> bool:
        return action_id in self._approved_irreversible.get(plan_id, set())
