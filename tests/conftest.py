import asyncio
from typing import Any, Dict, List, Optional

import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from camlight.core.errors import DeviceError
from camlight.core.models import LightState


class FakeService:
    """In-memory stand-in for KeyLightService that records every request."""

    def __init__(self, device_state: Optional[LightState] = None, journal: Optional[List] = None):
        self.device_state = device_state
        self.calls: List[LightState] = []
        self.applied: List[LightState] = []
        self.callers: List[Optional[asyncio.Task]] = []
        self.apply_errors: List[Optional[DeviceError]] = []
        self.fetch_error: Optional[DeviceError] = None
        self.journal = journal if journal is not None else []

    async def apply_state(self, host: str, port: int, state: LightState) -> None:
        self.calls.append(state)
        self.callers.append(asyncio.current_task())
        self.journal.append(("apply", state.on))
        await asyncio.sleep(0)
        if self.apply_errors:
            error = self.apply_errors.pop(0)
            if error is not None:
                raise error
        self.applied.append(state)
        self.device_state = state

    async def fetch_state(self, host: str, port: int) -> LightState:
        if self.fetch_error is not None:
            raise self.fetch_error
        if self.device_state is None:
            raise DeviceError("no state")
        return self.device_state


class FakeProbe:
    """Replays a presence sequence; an exception instance in it is raised."""

    def __init__(self, sequence, journal: Optional[List] = None):
        self.sequence = list(sequence)
        self.polled = 0
        self.journal = journal if journal is not None else []

    def poll(self) -> bool:
        self.journal.append(("poll", None))
        index = min(self.polled, len(self.sequence) - 1)
        self.polled += 1
        value = self.sequence[index]
        if isinstance(value, Exception):
            raise value
        return value


async def wait_until(predicate, timeout: float = 2.0) -> None:
    async def _spin():
        while not predicate():
            await asyncio.sleep(0.005)

    await asyncio.wait_for(_spin(), timeout)


class FakeDevice:
    """A Key Light speaking the /elgato/lights HTTP API."""

    def __init__(self) -> None:
        self.light: Dict[str, Any] = {"on": 1, "brightness": 30, "temperature": 200}
        self.puts: List[Dict[str, Any]] = []
        self.status = 200
        self.raw_body: Optional[str] = None
        self.delay = 0.0

    async def get_lights(self, request: web.Request) -> web.Response:
        await asyncio.sleep(self.delay)
        if self.status != 200:
            return web.Response(status=self.status)
        if self.raw_body is not None:
            return web.Response(text=self.raw_body, content_type="application/json")
        return web.json_response({"numberOfLights": 1, "lights": [self.light]})

    async def put_lights(self, request: web.Request) -> web.Response:
        await asyncio.sleep(self.delay)
        if self.status != 200:
            return web.Response(status=self.status)
        body = await request.json()
        self.puts.append(body)
        self.light.update(body["lights"][0])
        return web.json_response({"numberOfLights": 1, "lights": [self.light]})

    async def accessory_info(self, request: web.Request) -> web.Response:
        return web.json_response({"productName": "Elgato Key Light", "displayName": "Desk"})

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/elgato/lights", self.get_lights)
        app.router.add_put("/elgato/lights", self.put_lights)
        app.router.add_get("/elgato/accessory-info", self.accessory_info)
        return app


@pytest_asyncio.fixture
async def device():
    fake = FakeDevice()
    server = TestServer(fake.app(), host="127.0.0.1")
    await server.start_server()
    fake.host = "127.0.0.1"
    fake.port = server.port
    try:
        yield fake
    finally:
        await server.close()
