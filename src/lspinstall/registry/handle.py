"""
Handle on a single running install.
"""

import asyncio
from typing import Callable, List

StderrListener = Callable[[str], None]


class InstallHandle:
    """
    Returned by RegistryPackage.install().

    The handle emits diagnostic output (standard error chunks) while the install
    runs and is closed exactly once when the install finishes, whatever its outcome.
    Listeners registered late receive the chunks emitted so far.
    """

    def __init__(self) -> None:
        self._listeners: List[StderrListener] = []
        self._stderr: List[str] = []
        self._closed = asyncio.Event()

    def on_stderr(self, listener: StderrListener) -> "InstallHandle":
        for chunk in self._stderr:
            listener(chunk)
        self._listeners.append(listener)
        return self

    def emit_stderr(self, chunk: str) -> None:
        self._stderr.append(chunk)
        for listener in self._listeners:
            listener(chunk)

    def close(self) -> None:
        self._closed.set()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    @property
    def stderr(self) -> str:
        return "".join(self._stderr)

    async def wait_closed(self) -> None:
        await self._closed.wait()
