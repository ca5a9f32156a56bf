"""Type definitions for Autonomy Guardrails.

Core types for bounded unattended operation: resource usage accounting,
per-plan policy, escalation records and the decision returned for a
proposed action.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Literal

from daybreak.foundation.clock import from_iso, to_iso

MetadataValue = str | int | float | bool

EscalationDecision = Literal["approve", "reject"]


def frozen_metadata(data: Mapping[str, MetadataValue] | None = None) -> Mapping[str, MetadataValue]:
    return MappingProxyType(dict(data or {}))


# =============================================================================
# Usage & Budget
# =============================================================================


@dataclass(frozen=True, slots=True)
class AutonomyUsage:
    """Running resource counters for one plan.

    Counters only ever grow: ``merge`` ignores negative deltas.
    """

    tokens_used: int = 0
    api_calls: int = 0
    connector_actions: int = 0
    runtime_minutes: float = 0.0

    def merge(self, delta: "AutonomyUsage | None") -> "AutonomyUsage":
        """Return a new usage with ``delta`` added, clamping negatives to zero."""
        if delta is None:
            return self
        return AutonomyUsage(
            tokens_used=self.tokens_used + max(0, delta.tokens_used),
            api_calls=self.api_calls + max(0, delta.api_calls),
            connector_actions=self.connector_actions + max(0, delta.connector_actions),
            runtime_minutes=self.runtime_minutes + max(0.0, delta.runtime_minutes),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "tokens_used": self.tokens_used,
            "api_calls": self.api_calls,
            "connector_actions": self.connector_actions,
            "runtime_minutes": self.runtime_minutes,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AutonomyUsage":
        return cls(
            tokens_used=int(data.get("tokens_used", 0)),
            api_calls=int(data.get("api_calls", 0)),
            connector_actions=int(data.get("connector_actions", 0)),
            runtime_minutes=float(data.get("runtime_minutes", 0.0)),
        )


@dataclass(frozen=True, slots=True)
class ResourceBudget:
    """Hard ceilings for a plan."""

    max_tokens: int = 120_000
    max_api_calls: int = 200
    max_connector_actions: int = 50
    max_runtime_hours: float = 6.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "max_tokens": self.max_tokens,
            "max_api_calls": self.max_api_calls,
            "max_connector_actions": self.max_connector_actions,
            "max_runtime_hours": self.max_runtime_hours,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ResourceBudget":
        defaults = cls()
        return cls(
            max_tokens=int(data.get("max_tokens", defaults.max_tokens)),
            max_api_calls=int(data.get("max_api_calls", defaults.max_api_calls)),
            max_connector_actions=int(
                data.get("max_connector_actions", defaults.max_connector_actions)
            ),
            max_runtime_hours=float(
                data.get("max_runtime_hours", defaults.max_runtime_hours)
            ),
        )


@dataclass(frozen=True, slots=True)
class GuardrailPolicy:
    """Per-plan guardrail configuration."""

    escalation_threshold_pct: float = 0.8
    """Soft trigger (0-1 of any budget counter) that asks for review."""

    resource_budget: ResourceBudget = field(default_factory=ResourceBudget)
    """Hard ceilings."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "escalation_threshold_pct": self.escalation_threshold_pct,
            "resource_budget": self.resource_budget.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GuardrailPolicy":
        defaults = cls()
        return cls(
            escalation_threshold_pct=float(
                data.get("escalation_threshold_pct", defaults.escalation_threshold_pct)
            ),
            resource_budget=ResourceBudget.from_dict(data.get("resource_budget") or {}),
        )


@dataclass(frozen=True, slots=True)
class BudgetCheckResult:
    """Result of checking a projected usage against a policy."""

    passed: bool
    """Whether the action fits inside the policy."""

    projected: AutonomyUsage
    """Usage after the action, if it runs."""

    limit_type: Literal["budget", "timebox", "threshold"] | None = None
    """Which limit tripped (None if passed)."""

    reason: str = ""
    """Human-readable explanation."""

    usage_pct: float = 0.0
    """Highest fraction of any counter budget."""


# =============================================================================
# Escalation Types
# =============================================================================


class EscalationType(Enum):
    """Why an action was held for human review."""

    IRREVERSIBLE = "irreversible"
    """Action cannot be undone and has not been approved."""

    BUDGET = "budget"
    """Hard budget exceeded or escalation threshold crossed."""

    TIMEBOX = "timebox"
    """Plan ran past its maximum runtime."""

    KILL_SWITCH = "kill_switch"
    """Global emergency stop is active."""


class EscalationStatus(Enum):
    """Lifecycle of an escalation: pending, then approved or rejected."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(frozen=True, slots=True)
class Escalation:
    """A guardrail denial awaiting (or past) human review."""

    id: str
    plan_id: str
    type: EscalationType
    reason: str
    created_at: datetime
    status: EscalationStatus = EscalationStatus.PENDING
    metadata: Mapping[str, MetadataValue] = field(default_factory=frozen_metadata)
    resolved_at: datetime | None = None
    resolved_by_user_id: str | None = None

    @property
    def action_id(self) -> str:
        """Action this escalation cites ('' when plan-wide)."""
        value = self.metadata.get("action_id", "")
        return value if isinstance(value, str) else ""

    @property
    def is_pending(self) -> bool:
        return self.status is EscalationStatus.PENDING

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "plan_id": self.plan_id,
            "type": self.type.value,
            "status": self.status.value,
            "reason": self.reason,
            "metadata": dict(self.metadata),
            "created_at": to_iso(self.created_at),
            "resolved_at": to_iso(self.resolved_at),
            "resolved_by_user_id": self.resolved_by_user_id,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Escalation":
        return cls(
            id=data["id"],
            plan_id=data["plan_id"],
            type=EscalationType(data["type"]),
            status=EscalationStatus(data.get("status", "pending")),
            reason=data.get("reason", ""),
            metadata=frozen_metadata(data.get("metadata")),
            created_at=from_iso(data["created_at"]),
            resolved_at=from_iso(data.get("resolved_at")),
            resolved_by_user_id=data.get("resolved_by_user_id"),
        )


@dataclass(frozen=True, slots=True)
class GuardrailEvaluation:
    """Decision for one proposed action."""

    allow: bool
    blocked_by_kill_switch: bool = False
    escalation: Escalation | None = None
