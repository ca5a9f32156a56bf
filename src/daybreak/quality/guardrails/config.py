"""Configuration for Autonomy Guardrails.

Loads a guardrail policy from pyproject.toml or daybreak.yaml.
"""

import tomllib
from pathlib import Path
from typing import Any

import yaml

from daybreak.foundation.config import PolicyDefaults
from daybreak.foundation.errors import ErrorCode, config_error
from daybreak.quality.guardrails.types import GuardrailPolicy, ResourceBudget


def load_policy(project_root: Path | None = None) -> GuardrailPolicy | None:
    """Load a guardrail policy from project files.

    Looks for configuration in order:
    1. pyproject.toml [tool.daybreak.guardrails]
    2. daybreak.yaml guardrails section

    Args:
        project_root: Project root directory (defaults to cwd)

    Returns:
        GuardrailPolicy, or None when no project file defines one

    Raises:
        DaybreakError: If a file defines the section but it does not parse
    """
    if project_root is None:
        project_root = Path.cwd()

    pyproject_path = project_root / "pyproject.toml"
    if pyproject_path.exists():
        policy = _load_from_pyproject(pyproject_path)
        if policy:
            return policy

    yaml_path = project_root / "daybreak.yaml"
    if yaml_path.exists():
        policy = _load_from_yaml(yaml_path)
        if policy:
            return policy

    return None


def _load_from_pyproject(path: Path) -> GuardrailPolicy | None:
    """Load policy from pyproject.toml."""
    try:
        data = tomllib.loads(path.read_text())
    except tomllib.TOMLDecodeError as err:
        raise config_error(
            ErrorCode.CONFIG_INVALID, key=str(path), detail=str(err), cause=err
        ) from err

    section = data.get("tool", {}).get("daybreak", {}).get("guardrails", {})
    if not section:
        return None
    return parse_policy(section, source=str(path))


def _load_from_yaml(path: Path) -> GuardrailPolicy | None:
    """Load policy from daybreak.yaml."""
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as err:
        raise config_error(
            ErrorCode.CONFIG_INVALID, key=str(path), detail=str(err), cause=err
        ) from err

    section = data.get("guardrails", {}) if isinstance(data, dict) else {}
    if not section:
        return None
    return parse_policy(section, source=str(path))


def parse_policy(data: dict[str, Any], source: str = "guardrails") -> GuardrailPolicy:
    """Parse a configuration dictionary into a GuardrailPolicy.

    Accepts the short ``budget`` key or the full ``resource_budget`` key.
    """
    defaults = GuardrailPolicy()
    budget_data = data.get("budget", data.get("resource_budget")) or {}
    if not isinstance(budget_data, dict):
        raise config_error(
            ErrorCode.CONFIG_INVALID, key=f"{source}.budget", detail="expected a mapping"
        )

    try:
        threshold = float(
            data.get("escalation_threshold_pct", defaults.escalation_threshold_pct)
        )
        budget = ResourceBudget.from_dict(budget_data)
    except (TypeError, ValueError) as err:
        raise config_error(
            ErrorCode.CONFIG_INVALID, key=source, detail=str(err), cause=err
        ) from err

    if not 0 <= threshold <= 1:
        raise config_error(
            ErrorCode.CONFIG_INVALID,
            key=f"{source}.escalation_threshold_pct",
            detail=f"{threshold} is outside 0-1",
        )

    return GuardrailPolicy(escalation_threshold_pct=threshold, resource_budget=budget)


def save_policy(policy: GuardrailPolicy, path: Path) -> None:
    """Save a policy to a YAML file.

    Args:
        policy: Policy to save
        path: Path to save to
    """
    data = {
        "guardrails": {
            "escalation_threshold_pct": policy.escalation_threshold_pct,
            "budget": policy.resource_budget.to_dict(),
        }
    }

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)


def policy_from_defaults(defaults: PolicyDefaults) -> GuardrailPolicy:
    """Build the fallback policy described by the config's ``policy`` section."""
    return GuardrailPolicy(
        escalation_threshold_pct=defaults.escalation_threshold_pct,
        resource_budget=ResourceBudget(
            max_tokens=defaults.max_tokens,
            max_api_calls=defaults.max_api_calls,
            max_connector_actions=defaults.max_connector_actions,
            max_runtime_hours=defaults.max_runtime_hours,
        ),
    )
