"""Escalation System for Autonomy Guardrails.

Keeps the approval queue: raising escalations idempotently, resolving them,
and listing them for reviewers.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import replace
from datetime import datetime

from daybreak.foundation.clock import Clock, IdGenerator, utc_now, uuid_ids
from daybreak.foundation.errors import ErrorCode, escalation_error
from daybreak.quality.guardrails.types import (
    Escalation,
    EscalationDecision,
    EscalationStatus,
    EscalationType,
    MetadataValue,
    frozen_metadata,
)

logger = logging.getLogger(__name__)

_PendingKey = tuple[str, EscalationType, str]


class EscalationLedger:
    """Store of escalations with a structural idempotency guarantee.

    Pending escalations are indexed by ``(plan_id, type, action_id)``, so a
    second trigger for the same key returns the record already waiting for
    review instead of creating a duplicate.
    """

    def __init__(
        self,
        *,
        clock: Clock = utc_now,
        ids: IdGenerator = uuid_ids,
        on_escalate: Callable[[Escalation], None] | None = None,
    ) -> None:
        self._clock = clock
        self._ids = ids
        self.on_escalate = on_escalate
        self._escalations: dict[str, Escalation] = {}
        self._pending: dict[_PendingKey, str] = {}

    def ensure(
        self,
        plan_id: str,
        escalation_type: EscalationType,
        reason: str,
        metadata: Mapping[str, MetadataValue] | None = None,
        now: datetime | None = None,
    ) -> Escalation:
        """Return the pending escalation for this key, raising one if needed."""
        action_id = (metadata or {}).get("action_id", "")
        key = (plan_id, escalation_type, action_id if isinstance(action_id, str) else "")

        existing_id = self._pending.get(key)
        if existing_id is not None:
            return self._escalations[existing_id]

        escalation = Escalation(
            id=self._ids("autonomy-escalation"),
            plan_id=plan_id,
            type=escalation_type,
            reason=reason,
            metadata=frozen_metadata(metadata),
            created_at=now or self._clock(),
        )
        self._escalations[escalation.id] = escalation
        self._pending[key] = escalation.id
        logger.info(
            "Escalation %s raised for plan %s (%s): %s",
            escalation.id,
            plan_id,
            escalation_type.value,
            reason,
        )

        if self.on_escalate:
            self.on_escalate(escalation)
        return escalation

    def resolve(
        self,
        escalation_id: str,
        decision: EscalationDecision,
        reviewer_user_id: str,
        now: datetime | None = None,
    ) -> Escalation:
        """Approve or reject a pending escalation.

        Raises:
            DaybreakError: If the escalation is unknown or not pending
        """
        escalation = self._escalations.get(escalation_id)
        if escalation is None:
            raise escalation_error(ErrorCode.ESCALATION_NOT_FOUND, escalation_id)
        if not escalation.is_pending:
            raise escalation_error(
                ErrorCode.ESCALATION_ALREADY_RESOLVED,
                escalation_id,
                status=escalation.status.value,
            )

        resolved = replace(
            escalation,
            status=(
                EscalationStatus.APPROVED
                if decision == "approve"
                else EscalationStatus.REJECTED
            ),
            resolved_at=now or self._clock(),
            resolved_by_user_id=reviewer_user_id,
        )
        self._escalations[resolved.id] = resolved
        self._pending.pop((resolved.plan_id, resolved.type, resolved.action_id), None)
        logger.info(
            "Escalation %s %s by %s",
            resolved.id,
            resolved.status.value,
            reviewer_user_id,
        )
        return resolved

    def list_escalations(
        self,
        plan_id: str | None = None,
        status: EscalationStatus | None = None,
    ) -> list[Escalation]:
        """List escalations, newest first."""
        rows = [
            row
            for row in self._escalations.values()
            if (plan_id is None or row.plan_id == plan_id)
            and (status is None or row.status is status)
        ]
        return sorted(rows, key=lambda row: row.created_at, reverse=True)

    def has_pending(self, plan_id: str) -> bool:
        """Whether any escalation for the plan still awaits review."""
        return any(key[0] == plan_id for key in self._pending)


def format_escalation(escalation: Escalation) -> str:
    """Format escalation for display."""
    lines = [
        f"**Guardrail Triggered**: {escalation.type.value}",
        "",
        f"**Plan**: {escalation.plan_id}",
        f"**Reason**: {escalation.reason}",
    ]

    if escalation.action_id:
        lines.append(f"**Action**: {escalation.action_id}")

    usage_pct = escalation.metadata.get("usage_pct")
    if isinstance(usage_pct, (int, float)):
        lines.append(f"**Budget Used**: {usage_pct:.0%}")

    for counter in ("tokens_used", "api_calls", "connector_actions"):
        if counter in escalation.metadata:
            lines.append(f"**Projected {counter}**: {escalation.metadata[counter]}")

    return "\n".join(lines)
