from __future__ import annotations

import math
import os
from dataclasses import dataclass
from typing import Optional

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off")


class ConfigError(ValueError):
    """Fatal startup misconfiguration."""


# --------- env helpers (shared by every *config_from_env) ----------

def env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name)
    if v is None or not v.strip():
        return default
    return v.strip()


def env_bool(name: str, default: bool) -> bool:
    v = env_str(name)
    if v is None:
        return default
    low = v.lower()
    if low in _TRUE:
        return True
    if low in _FALSE:
        return False
    raise ConfigError(f"{name} must be a boolean (got {v!r})")


def env_float(name: str, default: float, *, min_value: Optional[float] = None, strict_min: bool = False) -> float:
    v = env_str(name)
    if v is None:
        out = float(default)
    else:
        try:
            out = float(v)
        except ValueError:
            raise ConfigError(f"{name} must be a number (got {v!r})") from None
        if not math.isfinite(out):
            raise ConfigError(f"{name} must be a finite number (got {v!r})")
    if min_value is not None:
        if strict_min and out <= min_value:
            raise ConfigError(f"{name} must be greater than {min_value:g} (got {out:g})")
        if not strict_min and out < min_value:
            raise ConfigError(f"{name} must be at least {min_value:g} (got {out:g})")
    return out


def env_int(name: str, default: int) -> int:
    v = env_str(name)
    if v is None:
        return default
    try:
        return int(v)
    except ValueError:
        raise ConfigError(f"{name} must be an integer (got {v!r})") from None


# --------- monitoring loop settings ----------

@dataclass(slots=True)
class MonitoringSettings:
    check_interval_s: float = 60.0
    fetch_timeout_s: float = 10.0
    cooldown_enabled: bool = True
    cooldown_minutes: float = 60.0
    require_configured_dispatcher: bool = False

    @property
    def cooldown_seconds(self) -> float:
        return self.cooldown_minutes * 60.0


def monitoring_from_env() -> MonitoringSettings:
    """
    QUOTE_CHECK_INTERVAL_S               (default 60, > 0)
    QUOTE_FETCH_TIMEOUT_S                (default 10, > 0)
    ALERT_COOLDOWN_ENABLED               (default true)
    ALERT_COOLDOWN_MINUTES               (default 60, >= 0)
    ALERT_REQUIRE_CONFIGURED_DISPATCHER  (default false)
    """
    return MonitoringSettings(
        check_interval_s=env_float("QUOTE_CHECK_INTERVAL_S", 60.0, min_value=0.0, strict_min=True),
        fetch_timeout_s=env_float("QUOTE_FETCH_TIMEOUT_S", 10.0, min_value=0.0, strict_min=True),
        cooldown_enabled=env_bool("ALERT_COOLDOWN_ENABLED", True),
        cooldown_minutes=env_float("ALERT_COOLDOWN_MINUTES", 60.0, min_value=0.0),
        require_configured_dispatcher=env_bool("ALERT_REQUIRE_CONFIGURED_DISPATCHER", False),
    )
