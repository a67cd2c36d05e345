import socket

import pytest

from camlight.core.errors import ParseError, ServerRejected, Unreachable
from camlight.core.models import LightState
from camlight.core.service import KeyLightService, decode_state, encode_state


def _free_port() -> int:
    with socket.socket() as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


class TestEncoding:
    def test_encode_single_light(self):
        body = encode_state(LightState(on=True, brightness=42, temperature=2900))
        assert body == {
            "numberOfLights": 1,
            "lights": [{"on": 1, "brightness": 42, "temperature": 344}],
        }

    def test_encode_off(self):
        body = encode_state(LightState(on=False, brightness=0, temperature=7000))
        assert body["lights"][0]["on"] == 0
        assert body["lights"][0]["temperature"] == 143

    def test_decode_uses_first_light_only(self):
        body = {
            "numberOfLights": 2,
            "lights": [
                {"on": 1, "brightness": 10, "temperature": 344},
                {"on": 0, "brightness": 90, "temperature": 143},
            ],
        }
        state = decode_state(body)
        assert state.on is True
        assert state.brightness == 10
        assert 2900 <= state.temperature <= 2960

    @pytest.mark.parametrize(
        "body",
        [
            None,
            [],
            {},
            {"lights": []},
            {"lights": "nope"},
            {"lights": [None]},
            {"lights": [{"on": 1, "brightness": 10}]},
            {"lights": [{"on": 1, "brightness": "10", "temperature": 200}]},
            {"lights": [{"on": 1, "brightness": float("nan"), "temperature": 200}]},
            {"lights": [{"on": 1, "brightness": 10, "temperature": float("inf")}]},
            {"lights": [{"on": float("-inf"), "brightness": 10, "temperature": 200}]},
        ],
    )
    def test_decode_rejects_incomplete_bodies(self, body):
        with pytest.raises(ParseError):
            decode_state(body)

    def test_decode_clamps_huge_integers(self):
        state = decode_state({"lights": [{"on": 1, "brightness": 10**400, "temperature": 10**400}]})
        assert state.brightness == 100
        assert state.temperature == 2900

    def test_decode_clamps_brightness(self):
        state = decode_state({"lights": [{"on": 0, "brightness": 140, "temperature": 200}]})
        assert state.brightness == 100
        assert state.on is False


class TestKeyLightService:
    @pytest.mark.asyncio
    async def test_fetch_state(self, device):
        device.light = {"on": 1, "brightness": 30, "temperature": 143}
        state = await KeyLightService().fetch_state(device.host, device.port)
        assert state.on is True
        assert state.brightness == 30
        assert state.temperature >= 6950

    @pytest.mark.asyncio
    async def test_apply_state_puts_one_light(self, device):
        await KeyLightService().apply_state(
            device.host, device.port, LightState(on=True, brightness=75, temperature=4500)
        )
        assert device.puts == [
            {"numberOfLights": 1, "lights": [{"on": 1, "brightness": 75, "temperature": 266}]}
        ]

    @pytest.mark.asyncio
    async def test_rejected_status(self, device):
        device.status = 503
        with pytest.raises(ServerRejected) as exc:
            await KeyLightService().apply_state(device.host, device.port, LightState())
        assert exc.value.status == 503

    @pytest.mark.asyncio
    async def test_malformed_json_is_parse_error(self, device):
        device.raw_body = "{not json"
        with pytest.raises(ParseError):
            await KeyLightService().fetch_state(device.host, device.port)

    @pytest.mark.asyncio
    async def test_missing_lights_is_parse_error(self, device):
        device.raw_body = '{"numberOfLights": 0}'
        with pytest.raises(ParseError):
            await KeyLightService().fetch_state(device.host, device.port)

    @pytest.mark.asyncio
    async def test_connection_refused_is_unreachable(self):
        with pytest.raises(Unreachable):
            await KeyLightService().fetch_state("127.0.0.1", _free_port())

    @pytest.mark.asyncio
    async def test_timeout_is_unreachable(self, device):
        device.delay = 1.0
        with pytest.raises(Unreachable):
            await KeyLightService(timeout_seconds=0.1).apply_state(device.host, device.port, LightState())

    @pytest.mark.asyncio
    async def test_accessory_info(self, device):
        info = await KeyLightService().fetch_accessory_info(device.host, device.port)
        assert info["displayName"] == "Desk"


@pytest.mark.asyncio
async def test_non_finite_json_is_parse_error(device):
    device.raw_body = '{"lights": [{"on": 1, "brightness": NaN, "temperature": Infinity}]}'
    with pytest.raises(ParseError):
        await KeyLightService().fetch_state(device.host, device.port)
