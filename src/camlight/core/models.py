from __future__ import annotations

import enum
import ipaddress
from dataclasses import dataclass, field

from .errors import ConfigError
from ..utils.color_utils import KELVIN_MAX, KELVIN_MIN

BRIGHTNESS_MIN = 0
BRIGHTNESS_MAX = 100
_UINT32_MAX = 2**32 - 1


@dataclass(frozen=True)
class LightState:
    """Power, brightness (percent) and color temperature (Kelvin) of a Key Light."""
    on: bool = False
    brightness: int = 50
    temperature: int = 5000  # Kelvin, 2900-7000

    def __post_init__(self) -> None:
        if not BRIGHTNESS_MIN <= self.brightness <= BRIGHTNESS_MAX:
            raise ValueError(f"brightness {self.brightness} outside {BRIGHTNESS_MIN}-{BRIGHTNESS_MAX}")
        if not KELVIN_MIN <= self.temperature <= KELVIN_MAX:
            raise ValueError(f"temperature {self.temperature}K outside {KELVIN_MIN}-{KELVIN_MAX}K")

    @classmethod
    def clamped(cls, on: bool, brightness: int, temperature: int) -> "LightState":
        return cls(
            on=bool(on),
            brightness=max(BRIGHTNESS_MIN, min(BRIGHTNESS_MAX, int(brightness))),
            temperature=max(KELVIN_MIN, min(KELVIN_MAX, int(temperature))),
        )


@dataclass(frozen=True)
class BackoffPolicy:
    """Extra wait added after consecutive failed ticks. ``base_ms == 0`` disables it."""
    base_ms: int = 0
    factor: float = 2.0
    max_ms: int = 0

    def extra_delay_ms(self, failures: int) -> int:
        if failures <= 0 or self.base_ms <= 0:
            return 0
        delay = self.base_ms * self.factor ** (failures - 1)
        if self.max_ms > 0:
            delay = min(delay, self.max_ms)
        return int(delay)


@dataclass(frozen=True)
class ControllerConfig:
    host: str
    port: int = 9123
    poll_interval_ms: int = 500
    backoff: BackoffPolicy = field(default_factory=BackoffPolicy)

    def validate(self) -> None:
        """Raise ConfigError unless this config can drive a controller."""
        try:
            ipaddress.ip_address(self.host)
        except ValueError as e:
            raise ConfigError(f"Invalid IP address: {self.host!r}") from e
        if not 0 <= self.port <= 65535:
            raise ConfigError(f"Invalid port: {self.port}")
        if not 0 <= self.poll_interval_ms <= _UINT32_MAX:
            raise ConfigError(f"Invalid check interval: {self.poll_interval_ms} ms")

    @property
    def base_url(self) -> str:
        return base_url(self.host, self.port)


def base_url(host: str, port: int) -> str:
    try:
        if ipaddress.ip_address(host).version == 6:
            host = f"[{host}]"
    except ValueError:
        pass
    return f"http://{host}:{port}"


class ControlSignal(enum.Enum):
    STOP = "stop"
