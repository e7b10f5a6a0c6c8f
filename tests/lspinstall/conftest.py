"""
Shared fixtures: an in-memory registry and a scripted process runner.
"""

import asyncio
import pathlib
from typing import Dict, List, Optional, Sequence

import pytest

from lspinstall.installer import PackageInstaller, PackageNode, to_hook
from lspinstall.lspinstall_exceptions import PackageNotFoundError
from lspinstall.lspinstall_logger import LspInstallLogger
from lspinstall.lspinstall_utils import CompletedCommand
from lspinstall.registry import InstallHandle

SUCCEED = "succeed"
FAIL = "fail"
UNINSTALL = "uninstall"
RAISE = "raise"


class FakePackage:
    """
    Registry package whose install outcome is scripted.

    outcome:
        succeed: the requested version ends up installed
        fail: nothing changes
        uninstall: the previous version is gone and nothing replaces it
        raise: install() raises before returning a handle
    """

    def __init__(
        self,
        registry: "FakeRegistry",
        name: str,
        installed: Optional[str] = None,
        latest: str = "1.0",
        outcome: str = SUCCEED,
        stderr: str = "",
        gate: Optional[asyncio.Event] = None,
        reports_installing: bool = True,
        lspconfig_name: Optional[str] = None,
        filetypes: Sequence[str] = (),
    ):
        self.registry = registry
        self.name = name
        self.installed = installed
        self.latest = latest
        self.outcome = outcome
        self.stderr = stderr
        self.gate = gate
        self.reports_installing = reports_installing
        self.lspconfig_name = lspconfig_name
        self.filetypes = list(filetypes)
        self.install_calls: List[str] = []
        self.installing = False

    def get_installed_version(self) -> Optional[str]:
        return self.installed

    def is_installed(self) -> bool:
        return self.installed is not None

    def get_latest_version(self) -> str:
        return self.latest

    def is_installing(self) -> bool:
        return self.reports_installing and self.installing

    def install(self, version: str) -> InstallHandle:
        if self.outcome == RAISE:
            raise RuntimeError(f"cannot install {self.name}")

        self.install_calls.append(version)
        self.registry.install_order.append(self.name)
        self.installing = True
        handle = InstallHandle()
        task = asyncio.get_running_loop().create_task(self._run(version, handle))
        self.registry.tasks.append(task)
        return handle

    async def _run(self, version: str, handle: InstallHandle) -> None:
        if self.gate is not None:
            await self.gate.wait()
        await asyncio.sleep(0)
        if self.stderr:
            handle.emit_stderr(self.stderr)
        if self.outcome == SUCCEED:
            self.installed = version
        elif self.outcome == UNINSTALL:
            self.installed = None
        self.installing = False
        self.registry.closed_order.append(self.name)
        handle.close()


class FakeRegistry:
    def __init__(self, install_root: pathlib.Path):
        self.install_root = install_root
        self.packages: Dict[str, FakePackage] = {}
        self.refresh_count = 0
        self.install_order: List[str] = []
        self.closed_order: List[str] = []
        self.tasks: List[asyncio.Task] = []

    def add(self, name: str, **kwargs) -> FakePackage:
        package = FakePackage(self, name, **kwargs)
        self.packages[name] = package
        return package

    async def refresh(self) -> None:
        self.refresh_count += 1

    def get_package(self, name: str) -> FakePackage:
        try:
            return self.packages[name]
        except KeyError:
            raise PackageNotFoundError(name) from None

    def install_location(self, name: str) -> pathlib.Path:
        return self.install_root / name


class FakeProcessRunner:
    """
    Process runner answering from a table keyed by argument vector.

    A table value is (returncode, stdout, stderr), an exception to raise, or a
    list of those consumed one per call (the last one repeats).
    """

    def __init__(self):
        self.results: Dict[tuple, object] = {}
        self.calls: List[tuple] = []

    def set(self, argv: Sequence[str], outcome) -> None:
        self.results[tuple(argv)] = outcome

    async def run(self, argv, cwd=None, on_stderr=None) -> CompletedCommand:
        self.calls.append((list(argv), cwd))
        outcome = self.results.get(tuple(argv), (0, "", ""))
        if isinstance(outcome, list):
            outcome = outcome.pop(0) if len(outcome) > 1 else outcome[0]
        await asyncio.sleep(0)
        if isinstance(outcome, Exception):
            raise outcome
        returncode, stdout, stderr = outcome
        if stderr and on_stderr is not None:
            on_stderr(stderr)
        return CompletedCommand(list(argv), returncode, stdout, stderr)

    def argvs(self) -> List[List[str]]:
        return [argv for argv, _ in self.calls]


@pytest.fixture
def logger():
    return LspInstallLogger()


@pytest.fixture
def registry(tmp_path):
    return FakeRegistry(tmp_path / "packages")


@pytest.fixture
def process_runner():
    return FakeProcessRunner()


@pytest.fixture
def installer(registry, logger, process_runner):
    return PackageInstaller(registry, logger, process_runner=process_runner)


@pytest.fixture
def make_node(registry):
    """Build a PackageNode for a package already added to the registry."""

    def _make(name, version, dependencies=(), hooks=(), filetypes=()):
        return PackageNode(
            name=name,
            version=version,
            registry_package=registry.get_package(name),
            dependencies=list(dependencies),
            post_install_hooks=[to_hook(hook) for hook in hooks],
            filetypes=list(filetypes),
        )

    return _make
