from __future__ import annotations

from typing import Optional


class CamlightError(Exception):
    """Base class for all camlight errors."""


class ConfigError(CamlightError):
    """Controller configuration is unusable (e.g. host is not an IP address)."""


class DeviceError(CamlightError):
    """A request to the light failed. Never fatal to the controller loop."""


class Unreachable(DeviceError):
    """Transport failure: connection refused, DNS, timeout, ..."""

    def __init__(self, url: str, cause: Optional[BaseException] = None) -> None:
        self.url = url
        self.cause = cause
        detail = f": {cause}" if cause is not None and str(cause) else ""
        super().__init__(f"{url} unreachable{detail}")


class ServerRejected(DeviceError):
    """The device answered with a non-success status."""

    def __init__(self, url: str, status: int) -> None:
        self.url = url
        self.status = status
        super().__init__(f"{url} rejected request with status {status}")


class ParseError(DeviceError):
    """Response body was malformed or incomplete."""


class ProbeError(CamlightError):
    """Reading an existing presence source failed."""
