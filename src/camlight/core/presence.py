"""Camera presence probes.

A probe answers one question: is any application using the camera right now?
``poll()`` returns a bool and raises ProbeError only when an existing source
cannot be read.
"""
from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Any, Iterator, Optional, Protocol, Sequence

from .errors import ProbeError

logger = logging.getLogger(__name__)

CONSENT_STORE = r"SOFTWARE\Microsoft\Windows\CurrentVersion\CapabilityAccessManager\ConsentStore\webcam"
NON_PACKAGED = CONSENT_STORE + r"\NonPackaged"


class PresenceProbe(Protocol):
    def poll(self) -> bool: ...


class RegistryConsentProbe:
    """Reads the Windows capability consent store.

    Every application that used the webcam has a subkey with a
    ``LastUsedTimeStop`` value; ``0`` means the session is still open.
    A missing consent path is reported as "not in use".
    """

    def __init__(self, paths: Sequence[str] = (NON_PACKAGED, CONSENT_STORE), registry: Any = None) -> None:
        if registry is None:
            import winreg as registry  # Windows only
        self._reg = registry
        self._paths = tuple(paths)

    def poll(self) -> bool:
        for path in self._paths:
            if self._any_session_open(path):
                return True
        return False

    def _any_session_open(self, path: str) -> bool:
        reg = self._reg
        try:
            root = reg.OpenKey(reg.HKEY_CURRENT_USER, path)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise ProbeError(f"Cannot open {path}: {e}") from e

        with root:
            for name in self._subkeys(root, path):
                stop = self._last_used_stop(root, name)
                if stop == 0:
                    logger.debug("Camera in use by %s", name)
                    return True
        return False

    def _subkeys(self, key: Any, path: str) -> Iterator[str]:
        index = 0
        while True:
            try:
                yield self._reg.EnumKey(key, index)
            except OSError as e:
                # ERROR_NO_MORE_ITEMS ends enumeration
                if getattr(e, "winerror", None) in (None, 259):
                    return
                raise ProbeError(f"Cannot enumerate {path}: {e}") from e
            index += 1

    def _last_used_stop(self, root: Any, name: str) -> Optional[int]:
        try:
            with self._reg.OpenKey(root, name) as sub:
                value, _ = self._reg.QueryValueEx(sub, "LastUsedTimeStop")
        except OSError:
            return None
        return value


class ProcVideoProbe:
    """Linux: the camera is in use when any process holds ``/dev/video*`` open."""

    def __init__(self, proc_root: str = "/proc", device_prefix: str = "/dev/video") -> None:
        self._root = Path(proc_root)
        self._prefix = device_prefix

    def poll(self) -> bool:
        if not self._root.is_dir():
            return False
        try:
            pids = [p for p in self._root.iterdir() if p.name.isdigit()]
        except OSError as e:
            raise ProbeError(f"Cannot list {self._root}: {e}") from e

        for pid in pids:
            try:
                fds = list((pid / "fd").iterdir())
            except OSError:
                # Other users' processes, or the process already exited
                continue
            for fd in fds:
                try:
                    target = os.readlink(fd)
                except OSError:
                    continue
                if target.startswith(self._prefix):
                    logger.debug("Camera in use by pid %s (%s)", pid.name, target)
                    return True
        return False


def default_probe() -> PresenceProbe:
    if sys.platform == "win32":
        return RegistryConsentProbe()
    return ProcVideoProbe()
