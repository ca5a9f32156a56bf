"""Autonomy Guardrails Module.

Bounded unattended operation through layered checks:

1. **Kill Switch**: Global emergency stop
2. **Irreversible Actions**: Explicit approval per action id
3. **Resource Budget**: Hard ceilings and a runtime timebox
4. **Escalation Threshold**: Ask for review before the ceiling is hit
5. **Escalation Queue**: Human-in-the-loop approvals

Example:
    >>> from daybreak.quality.guardrails import AutonomyGuardrails, GuardrailPolicy
    >>>
    >>> guardrails = AutonomyGuardrails()
    >>> guardrails.register_plan("plan-1", GuardrailPolicy())
    >>>
    >>> decision = guardrails.evaluate_action("plan-1", "rotate-keys", irreversible=True)
    >>> if not decision.allow:
    ...     guardrails.resolve_escalation(decision.escalation.id, "approve", "owner")
"""

from daybreak.quality.guardrails.budget import BudgetTracker, budget_fraction
from daybreak.quality.guardrails.config import (
    load_policy,
    parse_policy,
    policy_from_defaults,
    save_policy,
)
from daybreak.quality.guardrails.escalation import EscalationLedger, format_escalation
from daybreak.quality.guardrails.system import AutonomyGuardrails
from daybreak.quality.guardrails.types import (
    AutonomyUsage,
    BudgetCheckResult,
    Escalation,
    EscalationDecision,
    EscalationStatus,
    EscalationType,
    GuardrailEvaluation,
    GuardrailPolicy,
    ResourceBudget,
)

__all__ = [
    # Main system
    "AutonomyGuardrails",
    # Configuration
    "load_policy",
    "parse_policy",
    "policy_from_defaults",
    "save_policy",
    # Budget
    "BudgetTracker",
    "budget_fraction",
    # Escalation
    "EscalationLedger",
    "format_escalation",
    # Types
    "AutonomyUsage",
    "BudgetCheckResult",
    "Escalation",
    "EscalationDecision",
    "EscalationStatus",
    "EscalationType",
    "GuardrailEvaluation",
    "GuardrailPolicy",
    "ResourceBudget",
]
