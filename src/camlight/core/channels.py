from __future__ import annotations

import asyncio
from typing import AsyncIterator, List, Optional


class StatusChannel:
    """Unbounded controller -> presentation line channel.

    Sending is best-effort: once the receiving side closes the channel,
    further lines are dropped.
    """

    def __init__(self) -> None:
        self._queue: "asyncio.Queue[Optional[str]]" = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, line: str) -> None:
        if not self._closed:
            self._queue.put_nowait(line)

    def drain(self) -> List[str]:
        lines = []
        while True:
            try:
                line = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                return lines
            if line is not None:
                lines.append(line)

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            # Wake a pending __aiter__ consumer
            self._queue.put_nowait(None)

    async def __aiter__(self) -> AsyncIterator[str]:
        while True:
            line = await self._queue.get()
            if line is None:
                return
            yield line
