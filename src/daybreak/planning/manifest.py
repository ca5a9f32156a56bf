"""Plan manifests - YAML descriptions of a plan to create.

Example manifest:

    goal: Migrate billing to the new ledger
    user_id: alice
    workspace_id: finance
    days: 3
    tasks:
      1:
        - title: Inventory billing jobs
          estimated_tokens: 900
      3:
        - title: Cut over production ledger
          irreversible: true
    guardrails:
      escalation_threshold_pct: 0.75
      budget:
        max_tokens: 40000

``tasks`` maps 1-based day numbers to seed tasks; days without an entry get a
synthesized task. ``guardrails`` uses the same shape as ``daybreak.yaml``.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from daybreak.foundation.errors import DaybreakError, ErrorCode, config_error
from daybreak.planning.types import SeedTask
from daybreak.quality.guardrails.config import parse_policy
from daybreak.quality.guardrails.types import GuardrailPolicy


@dataclass(frozen=True, slots=True)
class PlanManifest:
    """Everything needed to call ``PlanEngine.create_plan``."""

    goal: str
    duration_days: int
    user_id: str = "local"
    workspace_id: str = "default"
    seed_tasks_by_day: tuple[tuple[SeedTask, ...], ...] = ()
    policy: GuardrailPolicy | None = None
    source: Path | None = None


def load_manifest(path: str | Path) -> PlanManifest:
    """Load a plan manifest from a YAML file.

    Raises:
        DaybreakError: MANIFEST_INVALID if the file is unreadable or malformed
    """
    path = Path(path)
    try:
        data = yaml.safe_load(path.read_text())
    except (OSError, yaml.YAMLError) as e:
        raise _invalid(path, str(e), cause=e) from e

    return parse_manifest(data, source=path)


def parse_manifest(data: Any, source: Path | None = None) -> PlanManifest:
    """Validate raw manifest data."""
    label = source or Path("<manifest>")
    if not isinstance(data, dict):
        raise _invalid(label, "expected a mapping at the top level")

    goal = str(data.get("goal", "")).strip()
    if not goal:
        raise _invalid(label, "'goal' is required")

    try:
        days = int(data.get("days", data.get("duration_days", 1)))
    except (TypeError, ValueError) as e:
        raise _invalid(label, f"'days' must be an integer: {e}", cause=e) from e
    if days < 1:
        raise _invalid(label, "'days' must be at least 1")

    seed_tasks = _parse_tasks(data.get("tasks") or {}, days, label)

    policy = None
    if data.get("guardrails"):
        try:
            policy = parse_policy(data["guardrails"], source=f"{label}:guardrails")
        except DaybreakError as e:
            raise _invalid(label, e.message, cause=e) from e

    return PlanManifest(
        goal=goal,
        duration_days=days,
        user_id=str(data.get("user_id", "local")),
        workspace_id=str(data.get("workspace_id", "default")),
        seed_tasks_by_day=seed_tasks,
        policy=policy,
        source=source,
    )


def _parse_tasks(raw: Any, days: int, label: Path) -> tuple[tuple[SeedTask, ...], ...]:
    if not isinstance(raw, dict):
        raise _invalid(label, "'tasks' must map day numbers to task lists")

    by_day: list[list[SeedTask]] = [[] for _ in range(days)]
    for day_key, entries in raw.items():
        try:
            day_number = int(day_key)
        except (TypeError, ValueError) as e:
            raise _invalid(label, f"day key {day_key!r} is not a number", cause=e) from e
        if not 1 <= day_number <= days:
            raise _invalid(label, f"day {day_number} is outside 1-{days}")
        if not isinstance(entries, list):
            raise _invalid(label, f"day {day_number} must list its tasks")

        for entry in entries:
            if isinstance(entry, str):
                entry = {"title": entry}
            if not isinstance(entry, dict) or not entry.get("title"):
                raise _invalid(label, f"every task on day {day_number} needs a title")
            by_day[day_number - 1].append(SeedTask.from_dict(entry))

    return tuple(tuple(tasks) for tasks in by_day)


def _invalid(path: Path, detail: str, cause: Exception | None = None) -> DaybreakError:
    return config_error(ErrorCode.MANIFEST_INVALID, path=str(path), detail=detail, cause=cause)
