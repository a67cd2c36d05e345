from __future__ import annotations

# Affine map between Kelvin and the Key Light's native temperature unit.
_SLOPE = -0.04902439
_OFFSET = 486.1951

DEVICE_MIN = 143
DEVICE_MAX = 344
KELVIN_MIN = 2900
KELVIN_MAX = 7000


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def to_device_unit(kelvin: int) -> int:
    """Convert Kelvin (2900K-7000K) to Elgato temperature value (143-344)."""
    return _clamp(round(_SLOPE * kelvin + _OFFSET), DEVICE_MIN, DEVICE_MAX)


def from_device_unit(value: int) -> int:
    """Convert Elgato temperature value (143-344) to Kelvin (2900K-7000K)."""
    return _clamp(round((value - _OFFSET) / _SLOPE), KELVIN_MIN, KELVIN_MAX)
