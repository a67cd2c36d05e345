from __future__ import annotations

import asyncio
import logging
import math
from typing import Any, Dict

import aiohttp

from .errors import ParseError, ServerRejected, Unreachable
from .models import LightState, base_url
from ..utils.color_utils import DEVICE_MAX, DEVICE_MIN, from_device_unit, to_device_unit

logger = logging.getLogger(__name__)

LIGHTS_PATH = "/elgato/lights"
ACCESSORY_INFO_PATH = "/elgato/accessory-info"


def encode_state(state: LightState) -> Dict[str, Any]:
    """Build the ``PUT /elgato/lights`` body for a single light."""
    return {
        "numberOfLights": 1,
        "lights": [
            {
                "on": 1 if state.on else 0,
                "brightness": state.brightness,
                "temperature": to_device_unit(state.temperature),
            }
        ],
    }


def decode_state(body: Any) -> LightState:
    """Parse the first light of a ``GET /elgato/lights`` body.

    Raises ParseError when the lights array, its first entry or any field is
    missing or not numeric. Additional lights are ignored.
    """
    if not isinstance(body, dict):
        raise ParseError("response body is not a JSON object")
    lights = body.get("lights")
    if not isinstance(lights, list) or not lights:
        raise ParseError("response has no lights")
    light = lights[0]
    if not isinstance(light, dict):
        raise ParseError("light entry is not a JSON object")

    values = {}
    for key in ("on", "brightness", "temperature"):
        value = light.get(key)
        # bool is an int subclass; the device sends 0/1 but tolerate true/false
        if not isinstance(value, (int, float)):
            raise ParseError(f"light entry has no numeric {key!r}")
        if isinstance(value, float) and not math.isfinite(value):
            raise ParseError(f"light entry has non-finite {key!r}")
        values[key] = int(value)

    return LightState.clamped(
        on=values["on"] != 0,
        brightness=values["brightness"],
        temperature=from_device_unit(max(DEVICE_MIN, min(DEVICE_MAX, values["temperature"]))),
    )


class KeyLightService:
    """HTTP service for interacting with Elgato Key Light devices."""

    def __init__(self, timeout_seconds: float = 2.0) -> None:
        self._timeout = timeout_seconds

    async def apply_state(self, host: str, port: int, state: LightState) -> None:
        """Send state update to a device."""
        url = base_url(host, port) + LIGHTS_PATH
        logger.debug("PUT %s %s", url, state)
        await self._request("PUT", url, json=encode_state(state))

    async def fetch_state(self, host: str, port: int) -> LightState:
        """Fetch current device state."""
        url = base_url(host, port) + LIGHTS_PATH
        logger.debug("GET %s", url)
        return decode_state(await self._request("GET", url))

    async def fetch_accessory_info(self, host: str, port: int) -> Dict[str, Any]:
        """Fetch product name, firmware and serial information."""
        url = base_url(host, port) + ACCESSORY_INFO_PATH
        body = await self._request("GET", url)
        if not isinstance(body, dict):
            raise ParseError("accessory info is not a JSON object")
        return body

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            timeout = aiohttp.ClientTimeout(total=self._timeout)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.request(method, url, **kwargs) as response:
                    if not 200 <= response.status < 300:
                        raise ServerRejected(url, response.status)
                    if method != "GET":
                        return None
                    try:
                        return await response.json(content_type=None)
                    except ValueError as e:
                        raise ParseError(f"invalid JSON from {url}: {e}") from e
        except asyncio.TimeoutError as e:
            raise Unreachable(url, e) from e
        except aiohttp.ClientError as e:
            raise Unreachable(url, e) from e
