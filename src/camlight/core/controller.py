from __future__ import annotations

import asyncio
import dataclasses
import enum
import logging

from .channels import StatusChannel
from .errors import DeviceError, ProbeError
from .models import ControlSignal, ControllerConfig, LightState
from .presence import PresenceProbe
from .service import KeyLightService

logger = logging.getLogger(__name__)


class ControllerState(enum.Enum):
    INITIALIZING = "initializing"
    SYNCING = "syncing"
    RECONCILING = "reconciling"
    STOPPING = "stopping"


class SyncController:
    """Keeps a Key Light's power in step with camera usage.

    The light is switched off once at startup, then every tick the presence
    probe is polled and the light is only written when presence differs from
    the cached power state. Failed writes leave the cache untouched so the
    next tick retries. Stopping is cooperative: a STOP on the command channel
    is observed at the top of the next iteration.
    """

    def __init__(
        self,
        config: ControllerConfig,
        service: KeyLightService,
        probe: PresenceProbe,
        light: LightState,
        status: StatusChannel,
    ) -> None:
        config.validate()
        self.config = config
        self._service = service
        self._probe = probe
        self._light = light
        self._status = status
        self._commands: "asyncio.Queue[ControlSignal]" = asyncio.Queue()
        self.state = ControllerState.INITIALIZING
        self._failures = 0

    @property
    def light(self) -> LightState:
        return self._light

    @property
    def failures(self) -> int:
        """Consecutive failed ticks, used for backoff."""
        return self._failures

    def update_light(self, brightness: int, temperature: int) -> None:
        """Adopt a manual brightness/temperature override for later writes."""
        self._light = dataclasses.replace(self._light, brightness=brightness, temperature=temperature)

    def request_stop(self) -> None:
        self._commands.put_nowait(ControlSignal.STOP)

    async def run(self) -> None:
        if not await self.initialize():
            return
        while True:
            if self._stop_requested():
                self._emit("Stopped")
                self.state = ControllerState.STOPPING
                return
            await self.tick()
            await self._wait(self._next_delay())

    async def initialize(self) -> bool:
        """Switch the light off regardless of what the device reported."""
        self.state = ControllerState.INITIALIZING
        off = dataclasses.replace(self._light, on=False)
        try:
            await self._service.apply_state(self.config.host, self.config.port, off)
        except DeviceError as e:
            self._emit(f"Failed to change light state: {e}", logging.WARNING)
            self.state = ControllerState.STOPPING
            return False
        self._light = off
        self._emit("Light turned off initially")
        self.state = ControllerState.SYNCING
        return True

    async def tick(self) -> None:
        """Poll presence once and reconcile the light against it."""
        try:
            in_use = await asyncio.to_thread(self._probe.poll)
        except ProbeError as e:
            self._failures += 1
            self._emit(f"Failed to check camera access: {e}", logging.WARNING)
            return

        if in_use == self._light.on:
            self._failures = 0
            self._emit(f"Camera access is {_describe(in_use)}")
            return

        self.state = ControllerState.RECONCILING
        target = dataclasses.replace(self._light, on=in_use)
        try:
            await self._service.apply_state(self.config.host, self.config.port, target)
        except DeviceError as e:
            self._failures += 1
            action = "on" if in_use else "off"
            self._emit(f"Failed to turn {action} the light: {e}", logging.WARNING)
        else:
            self._failures = 0
            # Only the power flag; an override may have landed during the write
            self._light = dataclasses.replace(self._light, on=in_use)
            self._emit(f"Camera access is {_describe(in_use)}")
        finally:
            self.state = ControllerState.SYNCING

    def _stop_requested(self) -> bool:
        try:
            return self._commands.get_nowait() is ControlSignal.STOP
        except asyncio.QueueEmpty:
            return False

    def _next_delay(self) -> float:
        extra = self.config.backoff.extra_delay_ms(self._failures)
        return (self.config.poll_interval_ms + extra) / 1000

    async def _wait(self, seconds: float) -> None:
        # Wake early on a command; it is re-queued for the top-of-loop check.
        try:
            signal = await asyncio.wait_for(self._commands.get(), timeout=seconds)
        except asyncio.TimeoutError:
            return
        self._commands.put_nowait(signal)

    def _emit(self, line: str, level: int = logging.INFO) -> None:
        logger.log(level, "[%s] %s", self.config.base_url, line)
        self._status.send(line)


def _describe(in_use: bool) -> str:
    return "enabled" if in_use else "disabled"
