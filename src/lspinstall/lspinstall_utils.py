"""
This file contains various utility functions like process execution.
"""

import asyncio
import codecs
import dataclasses
import os
import pathlib
from typing import Callable, Dict, List, Optional, Sequence, Union

StreamListener = Callable[[str], None]

# Pipes are read in blocks, output lines may be of any length
READ_SIZE = 65536


@dataclasses.dataclass
class CompletedCommand:
    """
    Result of a finished child process.
    """

    argv: List[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class ProcessRunner:
    """
    Runs child processes without blocking the event loop.
    """

    def __init__(self, env: Optional[Dict[str, str]] = None) -> None:
        self.env = env if env is not None else os.environ.copy()

    async def run(
        self,
        argv: Sequence[str],
        cwd: Optional[Union[str, pathlib.Path]] = None,
        on_stderr: Optional[StreamListener] = None,
    ) -> CompletedCommand:
        """
        Run the command and capture its output.

        Args:
            argv: The argument vector, the first element is the executable
            cwd: Working directory of the child process
            on_stderr: Called with every line of standard error as it arrives

        Returns:
            The CompletedCommand with the exit code and the captured output

        Raises:
            OSError: If the process could not be started (missing executable or cwd)
        """
        process = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(cwd) if cwd is not None else None,
            env=self.env,
        )

        stdout_chunks: List[str] = []
        stderr_chunks: List[str] = []
        try:
            await asyncio.gather(
                _drain(process.stdout, stdout_chunks, None),
                _drain(process.stderr, stderr_chunks, on_stderr),
            )
        except BaseException:
            if process.returncode is None:
                process.kill()
            await process.wait()
            raise
        returncode = await process.wait()

        return CompletedCommand(
            argv=list(argv),
            returncode=returncode,
            stdout="".join(stdout_chunks),
            stderr="".join(stderr_chunks),
        )


async def _drain(
    stream: Optional[asyncio.StreamReader],
    chunks: List[str],
    listener: Optional[StreamListener],
) -> None:
    if stream is None:
        return
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    pending = ""
    while True:
        data = await stream.read(READ_SIZE)
        text = decoder.decode(data, final=not data)
        if text:
            chunks.append(text)
            if listener is not None:
                pending += text
                lines = pending.splitlines(keepends=True)
                pending = lines.pop() if not lines[-1].endswith("\n") else ""
                for line in lines:
                    listener(line)
        if not data:
            break
    if listener is not None and pending:
        listener(pending)
