from __future__ import annotations

import socket
from typing import Optional

DEFAULT_LOCK_PORT = 45655


class SingleInstance:
    """Holds a localhost socket so only one automation process drives the light."""

    def __init__(self, port: int = DEFAULT_LOCK_PORT) -> None:
        self.port = port
        self.socket: Optional[socket.socket] = None

    def acquire(self) -> bool:
        """Return True if this process now owns the lock."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.bind(("127.0.0.1", self.port))
            sock.listen(1)
        except OSError:
            sock.close()
            return False
        self.socket = sock
        return True

    def release(self) -> None:
        if self.socket:
            self.socket.close()
            self.socket = None

    def __enter__(self) -> "SingleInstance":
        return self

    def __exit__(self, *exc) -> None:
        self.release()
