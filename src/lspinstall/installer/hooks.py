"""
Post-install hooks and the runner executing them.

A hook is one of two kinds:
1. CommandHook: an argument vector run in the package's install directory,
   successful when it exits with status 0
2. CallbackHook: a Python callable receiving the package node, successful
   unless it raises or returns False. Returning None counts as success.
"""

import dataclasses
import enum
import inspect
import logging
import pathlib
import shlex
from typing import TYPE_CHECKING, Any, Awaitable, Callable, List, Optional, Sequence, Tuple, Union

from lspinstall.installer.fanin import gather_all
from lspinstall.lspinstall_exceptions import ConfigurationError
from lspinstall.lspinstall_logger import LspInstallLogger
from lspinstall.lspinstall_utils import ProcessRunner

if TYPE_CHECKING:
    from lspinstall.installer.package_node import PackageNode

HookFunction = Callable[["PackageNode"], Union[Optional[bool], Awaitable[Optional[bool]]]]


@dataclasses.dataclass(frozen=True)
class CommandHook:
    argv: Tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.argv:
            raise ConfigurationError("hook command must not be empty")

    def describe(self) -> str:
        return shlex.join(self.argv)


@dataclasses.dataclass(frozen=True)
class CallbackHook:
    fn: HookFunction

    def describe(self) -> str:
        return getattr(self.fn, "__qualname__", repr(self.fn))


Hook = Union[CommandHook, CallbackHook]


def to_hook(value: Any) -> Hook:
    """
    Convert a declared hook (argument list or callable) to a Hook.

    Raises:
        ConfigurationError: If the value is neither
    """
    if isinstance(value, (CommandHook, CallbackHook)):
        return value
    if callable(value):
        return CallbackHook(value)
    if isinstance(value, (list, tuple)) and all(isinstance(arg, str) for arg in value):
        return CommandHook(tuple(value))
    raise ConfigurationError("hook must be a shell command (list of strings) or a function")


class HookOutcome(enum.Enum):
    SUCCEEDED = "succeeded"
    RETURNED_FALSE = "returned_false"
    RAISED = "raised"
    EXITED_NON_ZERO = "exited_non_zero"
    FAILED_TO_START = "failed_to_start"

    @property
    def ok(self) -> bool:
        return self is HookOutcome.SUCCEEDED


class HookRunner:
    """
    Runs the post-install hooks of a package.

    All hooks of a package start together and the runner reports once the last
    one has finished. A failing hook never stops its siblings.
    """

    def __init__(self, logger: LspInstallLogger, process_runner: Optional[ProcessRunner] = None):
        self.logger = logger
        self.process_runner = process_runner or ProcessRunner()

    async def run_hooks(
        self, hooks: Sequence[Hook], node: "PackageNode", cwd: pathlib.Path
    ) -> bool:
        """
        Run every hook concurrently.

        Args:
            hooks: The hooks to run
            node: The package the hooks belong to, passed to callbacks
            cwd: Working directory of command hooks

        Returns:
            True if every hook succeeded (also when there are no hooks)
        """
        if not hooks:
            return True

        self.logger.log(f"Running post install hooks for {node.name}", logging.INFO)

        outcomes: List[HookOutcome] = await gather_all(
            (self.run_hook(hook, node, cwd) for hook in hooks),
            on_error=lambda e: self._unexpected_error(node, e),
        )

        success = all(outcome.ok for outcome in outcomes)
        if success:
            self.logger.log(f"Finished all post install hooks for {node.name}", logging.INFO)
        return success

    async def run_hook(self, hook: Hook, node: "PackageNode", cwd: pathlib.Path) -> HookOutcome:
        match hook:
            case CommandHook(argv=argv):
                return await self._run_command(argv, node, cwd)
            case CallbackHook(fn=fn):
                return await self._run_callback(fn, node)
        raise TypeError(f"unknown hook kind: {hook!r}")

    async def _run_command(
        self, argv: Tuple[str, ...], node: "PackageNode", cwd: pathlib.Path
    ) -> HookOutcome:
        try:
            result = await self.process_runner.run(argv, cwd=cwd)
        except OSError as e:
            self.logger.log(
                f"Post install hook command failed to start for {node.name}: {shlex.join(argv)}: {e}",
                logging.ERROR,
            )
            return HookOutcome.FAILED_TO_START

        if result.ok:
            return HookOutcome.SUCCEEDED

        stdout = f"\nstdout:\n{result.stdout}" if result.stdout else ""
        stderr = f"\nstderr:\n{result.stderr}" if result.stderr else ""
        self.logger.log(
            f"Post install hook for {node.name} failed with non-zero exit status "
            f"({result.returncode}): {shlex.join(argv)}{stdout}{stderr}",
            logging.ERROR,
        )
        return HookOutcome.EXITED_NON_ZERO

    async def _run_callback(self, fn: HookFunction, node: "PackageNode") -> HookOutcome:
        try:
            result = fn(node)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            self.logger.log(
                f"Post install hook function failed for {node.name}: {e}", logging.ERROR
            )
            return HookOutcome.RAISED

        # Only an explicit False is a failure
        if result is False:
            self.logger.log(
                f"Post install hook function returned false for {node.name}", logging.ERROR
            )
            return HookOutcome.RETURNED_FALSE
        return HookOutcome.SUCCEEDED

    def _unexpected_error(self, node: "PackageNode", error: Exception) -> HookOutcome:
        self.logger.log(f"Post install hook crashed for {node.name}: {error}", logging.ERROR)
        return HookOutcome.RAISED
