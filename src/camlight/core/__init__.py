from .errors import (
    CamlightError,
    ConfigError,
    DeviceError,
    ParseError,
    ProbeError,
    ServerRejected,
    Unreachable,
)
from .models import BackoffPolicy, ControllerConfig, ControlSignal, LightState
from .controller import ControllerState, SyncController
from .service import KeyLightService
from .supervisor import Supervisor

__all__ = [
    "BackoffPolicy",
    "CamlightError",
    "ConfigError",
    "ControlSignal",
    "ControllerConfig",
    "ControllerState",
    "DeviceError",
    "KeyLightService",
    "LightState",
    "ParseError",
    "ProbeError",
    "ServerRejected",
    "SyncController",
    "Supervisor",
    "Unreachable",
]
