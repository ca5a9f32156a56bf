"""Daybreak configuration management.

Loads configuration from .daybreak/config.yaml with sensible defaults.
Settings can be overridden via environment variables (DAYBREAK_*).

Config locations (in priority order):
1. Explicit path passed to load_config()
2. .daybreak/config.yaml (project-local)
3. ~/.daybreak/config.yaml (user-global)
4. Built-in defaults

Example file:

    policy:
      escalation_threshold_pct: 0.75
      max_tokens: 60000
    plans:
      task_runtime_minutes: 30
      synthesized:
        tokens: 2000
"""

import logging
import os
import threading
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

from daybreak.foundation.errors import ErrorCode, config_error

logger = logging.getLogger(__name__)

MAX_DURATION_DAYS = 30
"""Longest plan the engine will schedule, whatever the config says."""


@dataclass(frozen=True, slots=True)
class EstimateDefaults:
    """Default resource estimate for one task."""

    tokens: int
    api_calls: int
    connector_actions: int


@dataclass(frozen=True, slots=True)
class PlanDefaults:
    """Defaults the plan engine applies when the caller leaves fields unset."""

    seed: EstimateDefaults = field(
        default_factory=lambda: EstimateDefaults(tokens=1200, api_calls=1, connector_actions=0)
    )
    """Estimates for caller-supplied seed tasks."""

    synthesized: EstimateDefaults = field(
        default_factory=lambda: EstimateDefaults(tokens=1800, api_calls=2, connector_actions=1)
    )
    """Estimates for tasks the engine synthesizes per day."""

    compensating: EstimateDefaults = field(
        default_factory=lambda: EstimateDefaults(tokens=1500, api_calls=2, connector_actions=1)
    )
    """Estimates for recovery tasks inserted after a failure."""

    task_runtime_minutes: float = 20.0
    """Runtime charged per task when the executor reports none."""

    max_duration_days: int = MAX_DURATION_DAYS
    """Upper clamp for plan duration (1 to MAX_DURATION_DAYS)."""


@dataclass(frozen=True, slots=True)
class PolicyDefaults:
    """Generous fallback guardrail policy for plans created without one."""

    escalation_threshold_pct: float = 0.8
    max_tokens: int = 120_000
    max_api_calls: int = 200
    max_connector_actions: int = 50
    max_runtime_hours: float = 6.0


@dataclass(frozen=True, slots=True)
class DaybreakConfig:
    """Root configuration for Daybreak."""

    plans: PlanDefaults = field(default_factory=PlanDefaults)
    """Plan engine defaults."""

    policy: PolicyDefaults = field(default_factory=PolicyDefaults)
    """Fallback guardrail policy."""

    debug: bool = False
    """Enable debug logging by default."""


# Global config instance (lazy-loaded, thread-safe)
_config: DaybreakConfig | None = None
_config_lock = threading.Lock()

# Section -> nested subsections that may appear in env var names
_ENV_SECTIONS: dict[str, frozenset[str]] = {
    "policy": frozenset(),
    "plans": frozenset({"seed", "synthesized", "compensating"}),
}


def _deep_update(base: dict, updates: dict) -> dict:
    """Recursively update a dict with another dict."""
    for key, value in updates.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_update(base[key], value)
        else:
            base[key] = value
    return base


def _coerce(value: str) -> bool | int | float | str:
    if value.lower() in ("true", "false"):
        return value.lower() == "true"
    if value.isdigit() or (value.startswith("-") and value[1:].isdigit()):
        return int(value)
    try:
        return float(value)
    except ValueError:
        return value


def _apply_env_overrides(config_dict: dict, environ: dict[str, str] | None = None) -> dict:
    """Apply environment variable overrides.

    Environment variables follow pattern: DAYBREAK_SECTION[_SUBSECTION]_KEY

    Examples:
        DAYBREAK_POLICY_MAX_TOKENS=50000
        DAYBREAK_PLANS_TASK_RUNTIME_MINUTES=15
        DAYBREAK_PLANS_SEED_TOKENS=900
        DAYBREAK_DEBUG=true
    """
    prefix = "DAYBREAK_"
    environ = os.environ if environ is None else environ

    for key, value in environ.items():
        if not key.startswith(prefix):
            continue
        path_str = key[len(prefix):].lower()

        if path_str == "debug":
            config_dict["debug"] = _coerce(value)
            continue

        for section, subsections in _ENV_SECTIONS.items():
            if not path_str.startswith(section + "_"):
                continue
            remaining = path_str[len(section) + 1:]
            target = config_dict.setdefault(section, {})
            for subsection in subsections:
                if remaining.startswith(subsection + "_"):
                    target = target.setdefault(subsection, {})
                    remaining = remaining[len(subsection) + 1:]
                    break
            target[remaining] = _coerce(value)
            break

    return config_dict


def _dict_to_config(data: dict) -> DaybreakConfig:
    """Convert a dict to DaybreakConfig."""
    try:
        plans_data = dict(data.get("plans", {}))
        estimates = {
            name: EstimateDefaults(**plans_data.pop(name))
            for name in ("seed", "synthesized", "compensating")
            if name in plans_data
        }
        config = DaybreakConfig(
            plans=PlanDefaults(**plans_data, **estimates),
            policy=PolicyDefaults(**data.get("policy", {})),
            debug=bool(data.get("debug", False)),
        )
    except TypeError as err:
        raise config_error(ErrorCode.CONFIG_INVALID, key="config", detail=str(err), cause=err) from err

    max_days = config.plans.max_duration_days
    if not isinstance(max_days, int) or not 1 <= max_days <= MAX_DURATION_DAYS:
        raise config_error(
            ErrorCode.CONFIG_INVALID,
            key="plans.max_duration_days",
            detail=f"{max_days} is outside 1-{MAX_DURATION_DAYS}",
        )
    return config


def load_config(path: str | Path | None = None) -> DaybreakConfig:
    """Load configuration from file with defaults and env overrides.

    Priority (highest to lowest):
    1. Environment variables (DAYBREAK_*)
    2. Explicit path if provided
    3. .daybreak/config.yaml (project-local)
    4. ~/.daybreak/config.yaml (user-global)
    5. Built-in defaults

    Args:
        path: Optional explicit config file path.

    Returns:
        Merged DaybreakConfig instance.

    Raises:
        DaybreakError: If the merged settings name unknown fields
    """
    global _config

    config_dict: dict[str, Any] = asdict(DaybreakConfig())

    config_paths = []
    if path:
        config_paths.append(Path(path))
    config_paths.extend([
        Path(".daybreak/config.yaml"),
        Path.home() / ".daybreak" / "config.yaml",
    ])

    for config_path in config_paths:
        if config_path.exists():
            try:
                with open(config_path) as f:
                    file_config = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                logger.warning("Skipping unreadable config %s: %s", config_path, e)
                continue
            _deep_update(config_dict, file_config)
            break

    config_dict = _apply_env_overrides(config_dict)

    _config = _dict_to_config(config_dict)
    return _config


def get_config() -> DaybreakConfig:
    """Get the current configuration, loading if needed.

    Thread-safe with double-check locking.
    """
    global _config

    if _config is not None:
        return _config

    with _config_lock:
        if _config is None:
            _config = load_config()
        return _config


def reset_config() -> None:
    """Reset the global config (useful for testing)."""
    global _config
    with _config_lock:
        _config = None


def save_default_config(path: Path | None = None) -> Path:
    """Write the built-in defaults to a YAML file.

    Args:
        path: Target file (default: .daybreak/config.yaml)

    Returns:
        The path written.
    """
    path = path or Path(".daybreak/config.yaml")
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.dump(asdict(DaybreakConfig()), f, default_flow_style=False, sort_keys=False)
    return path
