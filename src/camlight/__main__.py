#!/usr/bin/env python3
"""
camlight - switch a Key Light on while the camera is in use
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from camlight import __version__
from camlight.config import load_settings
from camlight.core.errors import ConfigError, DeviceError
from camlight.core.models import LightState
from camlight.core.presence import default_probe
from camlight.core.service import KeyLightService
from camlight.core.settings_schema import AppSettings
from camlight.core.supervisor import Supervisor
from camlight.utils.single_instance import SingleInstance

logger = logging.getLogger("camlight")

EXIT_CONFIG = 2
EXIT_DEVICE = 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="camlight", description="Camera-driven Key Light control")
    parser.add_argument('--version', action='version', version=f'camlight {__version__}')
    parser.add_argument('--config', help='Settings JSON file (default: $XDG_CONFIG_HOME/camlight/settings.json)')
    parser.add_argument('--debug', action='store_true', help='Enable debug output')
    parser.add_argument('--host', help='Light IP address')
    parser.add_argument('--port', type=int, help='Light HTTP port')

    sub = parser.add_subparsers(dest='command')

    run = sub.add_parser('run', help='Follow camera usage until interrupted (default)')
    run.add_argument('--interval', type=int, help='Camera check interval in ms')
    run.add_argument('--brightness', type=int, help='Brightness used when switching on (0-100)')
    run.add_argument('--temperature', type=int, help='Color temperature in Kelvin (2900-7000)')
    run.add_argument('--backoff-ms', type=int, help='Extra delay after a failed check, doubled per failure')

    sub.add_parser('status', help='Print the light state')

    set_ = sub.add_parser('set', help='Change the light directly')
    power = set_.add_mutually_exclusive_group()
    power.add_argument('--on', dest='on', action='store_true', default=None)
    power.add_argument('--off', dest='on', action='store_false')
    set_.add_argument('--brightness', type=int)
    set_.add_argument('--temperature', type=int)
    return parser


def resolve_settings(args: argparse.Namespace) -> AppSettings:
    settings = load_settings(args.config)
    overrides = {
        'host': args.host,
        'port': args.port,
        'check_interval_ms': getattr(args, 'interval', None),
        'brightness': getattr(args, 'brightness', None),
        'temperature': getattr(args, 'temperature', None),
        'backoff_ms': getattr(args, 'backoff_ms', None),
    }
    for key, value in overrides.items():
        if value is not None:
            setattr(settings, key, value)
    if args.debug:
        settings.debug_logging = True
    return settings


async def run_automation(settings: AppSettings, stop: Optional[asyncio.Event] = None) -> None:
    supervisor = Supervisor(
        KeyLightService(settings.http_timeout_s),
        default_probe(),
        settings.default_light(),
    )
    await supervisor.start(settings.controller_config())

    async def _print_events() -> None:
        async for line in supervisor.events():
            print(line, flush=True)

    printer = asyncio.create_task(_print_events())
    try:
        await (stop or asyncio.Event()).wait()
    finally:
        await supervisor.stop()
    await printer


async def show_status(settings: AppSettings) -> None:
    service = KeyLightService(settings.http_timeout_s)
    state = await service.fetch_state(settings.host, settings.port)
    try:
        info = await service.fetch_accessory_info(settings.host, settings.port)
    except DeviceError as e:
        logger.debug("No accessory info: %s", e)
        info = {}
    name = info.get('displayName') or info.get('productName') or settings.host
    print(f"{name}: {'on' if state.on else 'off'}, "
          f"brightness {state.brightness}%, temperature {state.temperature}K")


async def set_light(settings: AppSettings, on: Optional[bool], brightness: Optional[int],
                    temperature: Optional[int]) -> LightState:
    service = KeyLightService(settings.http_timeout_s)
    try:
        current = await service.fetch_state(settings.host, settings.port)
    except DeviceError as e:
        logger.debug("Using configured light state: %s", e)
        current = settings.default_light()
    target = LightState.clamped(
        current.on if on is None else on,
        current.brightness if brightness is None else brightness,
        current.temperature if temperature is None else temperature,
    )
    await service.apply_state(settings.host, settings.port, target)
    return target


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)
    settings = resolve_settings(args)
    logging.basicConfig(
        level=logging.DEBUG if settings.debug_logging else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    try:
        settings.controller_config().validate()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG

    command = args.command or 'run'
    try:
        if command == 'status':
            asyncio.run(show_status(settings))
        elif command == 'set':
            asyncio.run(set_light(settings, args.on, args.brightness, args.temperature))
        else:
            with SingleInstance() as lock:
                if not lock.acquire():
                    print("camlight is already running.", file=sys.stderr)
                    return 0
                asyncio.run(run_automation(settings))
    except DeviceError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_DEVICE
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
