"""Foundation domain - base config, errors, logging and the clock/id seams.

This domain has no dependencies on other daybreak modules. Everything else
imports from here.
"""

from daybreak.foundation.clock import (
    Clock,
    IdGenerator,
    SequentialIds,
    utc_now,
    uuid_ids,
)
from daybreak.foundation.config import (
    DaybreakConfig,
    EstimateDefaults,
    PlanDefaults,
    PolicyDefaults,
    get_config,
    load_config,
    reset_config,
    save_default_config,
)
from daybreak.foundation.errors import (
    ERROR_MESSAGES,
    RECOVERY_HINTS,
    DaybreakError,
    ErrorCode,
)

__all__ = [
    # === Clock & ids ===
    "Clock",
    "IdGenerator",
    "SequentialIds",
    "utc_now",
    "uuid_ids",
    # === Config ===
    "DaybreakConfig",
    "EstimateDefaults",
    "PlanDefaults",
    "PolicyDefaults",
    "get_config",
    "load_config",
    "reset_config",
    "save_default_config",
    # === Errors ===
    "ERROR_MESSAGES",
    "RECOVERY_HINTS",
    "DaybreakError",
    "ErrorCode",
]
