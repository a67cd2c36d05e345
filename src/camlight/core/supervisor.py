from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import AsyncIterator, List, Optional

from .channels import StatusChannel
from .controller import SyncController
from .errors import DeviceError
from .models import ControllerConfig, LightState
from .presence import PresenceProbe
from .service import KeyLightService

logger = logging.getLogger(__name__)


class Supervisor:
    """Owns the single live SyncController and restarts it on changes.

    A replacement controller is only created after the previous one's task
    has finished, so two controllers never write to the light at once.
    Manual overrides are sent straight to the device from the caller's
    context.
    """

    def __init__(
        self,
        service: KeyLightService,
        probe: PresenceProbe,
        default_light: LightState,
    ) -> None:
        self._service = service
        self._probe = probe
        self._light = default_light
        self._config: Optional[ControllerConfig] = None
        self._controller: Optional[SyncController] = None
        self._task: Optional[asyncio.Task] = None
        self._status: Optional[StatusChannel] = None
        self.last_status: Optional[str] = None

    @property
    def config(self) -> Optional[ControllerConfig]:
        return self._config

    @property
    def light(self) -> LightState:
        return self._light

    @property
    def controller(self) -> Optional[SyncController]:
        return self._controller

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self, config: ControllerConfig) -> None:
        """Start automation for ``config``. Raises ConfigError for a bad host."""
        config.validate()
        await self.stop()
        self._config = config
        await self._spawn()

    async def reconfigure(self, config: ControllerConfig) -> None:
        """Replace the running controller with one for ``config``.

        ``config`` is validated before the current controller is stopped, so
        a ConfigError leaves automation running unchanged.
        """
        await self.start(config)

    async def restart(self) -> None:
        if self._config is None:
            raise RuntimeError("Supervisor was never started")
        await self.start(self._config)

    async def stop(self) -> None:
        """Stop the current controller and wait until its task is done."""
        if self._controller is None:
            return
        controller, task, status = self._controller, self._task, self._status
        self._controller = self._task = self._status = None

        controller.request_stop()
        if task is not None:
            await task
        self._light = dataclasses.replace(self._light, on=controller.light.on)
        # Keep the final lines ("Stopped") before discarding the channel
        self._remember(status.drain())
        status.close()
        logger.debug("Controller for %s terminated", controller.config.base_url)

    async def toggle(self) -> Optional[str]:
        """Manually flip the light.

        Automation is stopped first. Switching on leaves it suspended until
        the next restart or reconfigure; switching off restarts it.
        Returns an error line on device failure, None on success.
        """
        config = self._require_config()
        target = dataclasses.replace(self._light, on=not self._current_on())
        await self.stop()
        error = None
        try:
            await self._service.apply_state(config.host, config.port, target)
        except DeviceError as e:
            error = self._fail(f"Failed to toggle light: {e}")
        else:
            self._light = target
        if not target.on:
            await self.restart()
        return error

    async def set_brightness(self, brightness: int) -> Optional[str]:
        target = LightState.clamped(self._current_on(), brightness, self._light.temperature)
        return await self._apply(target, "brightness")

    async def set_temperature(self, kelvin: int) -> Optional[str]:
        target = LightState.clamped(self._current_on(), self._light.brightness, kelvin)
        return await self._apply(target, "temperature")

    def drain_status(self) -> List[str]:
        """Non-blocking read of the current controller's pending lines."""
        if self._status is None:
            return []
        lines = self._status.drain()
        self._remember(lines)
        return lines

    async def events(self) -> AsyncIterator[str]:
        """Status lines of the current controller; ends when it is replaced."""
        status = self._status
        if status is None:
            return
        async for line in status:
            self.last_status = line
            yield line

    async def _spawn(self) -> None:
        config = self._config
        try:
            self._light = await self._service.fetch_state(config.host, config.port)
        except DeviceError as e:
            logger.info("Using default light state, device read failed: %s", e)
        self.last_status = None
        self._status = StatusChannel()
        self._controller = SyncController(config, self._service, self._probe, self._light, self._status)
        self._task = asyncio.create_task(self._controller.run())
        logger.debug("Controller for %s started", config.base_url)

    async def _apply(self, target: LightState, what: str) -> Optional[str]:
        config = self._require_config()
        try:
            await self._service.apply_state(config.host, config.port, target)
        except DeviceError as e:
            return self._fail(f"Failed to update {what}: {e}")
        self._light = target
        if self._controller is not None:
            self._controller.update_light(target.brightness, target.temperature)
        return None

    def _current_on(self) -> bool:
        if self._controller is not None:
            return self._controller.light.on
        return self._light.on

    def _require_config(self) -> ControllerConfig:
        if self._config is None:
            raise RuntimeError("Supervisor was never started")
        return self._config

    def _fail(self, line: str) -> str:
        logger.warning(line)
        self.last_status = line
        return line

    def _remember(self, lines: List[str]) -> None:
        if lines:
            self.last_status = lines[-1]
