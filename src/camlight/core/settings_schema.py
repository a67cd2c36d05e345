from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping

from .models import BackoffPolicy, ControllerConfig, LightState


@dataclass
class AppSettings:
    host: str = "192.168.178.21"
    port: int = 9123
    check_interval_ms: int = 500
    light_on: bool = False
    brightness: int = 50
    temperature: int = 5000
    http_timeout_s: float = 2.0
    backoff_ms: int = 0
    debug_logging: bool = False

    def controller_config(self) -> ControllerConfig:
        return ControllerConfig(
            host=self.host,
            port=self.port,
            poll_interval_ms=self.check_interval_ms,
            backoff=BackoffPolicy(base_ms=self.backoff_ms, max_ms=self.backoff_ms * 16),
        )

    def default_light(self) -> LightState:
        return LightState.clamped(self.light_on, self.brightness, self.temperature)


def defaults_dict() -> Dict[str, Any]:
    d = AppSettings()
    return {f.name: getattr(d, f.name) for f in fields(AppSettings)}


def with_defaults(values: Mapping[str, Any]) -> AppSettings:
    """Build settings from ``values``, defaulting missing or mistyped keys.

    Unknown keys are ignored. An int is accepted where a float is expected;
    a bool is never accepted as a number.
    """
    defaults = defaults_dict()
    resolved: Dict[str, Any] = {}
    for key, default in defaults.items():
        value = values.get(key, default)
        resolved[key] = value if _same_kind(value, default) else default
    resolved["host"] = resolved["host"].strip()
    return AppSettings(**resolved)


def _same_kind(value: Any, default: Any) -> bool:
    if isinstance(default, bool) or isinstance(value, bool):
        return isinstance(value, bool) and isinstance(default, bool)
    if isinstance(default, float):
        return isinstance(value, (int, float))
    return isinstance(value, type(default))
