"""
Registry backed by an external command-line installer.

Each package entry of the [registry] section describes how to install a version
and how to read the installed and latest versions. The registry keeps the
install-state of every package in memory; the packages themselves are placed
by the external tool.
"""

import asyncio
import logging
import pathlib
import time
from typing import Dict, List, Optional, Set

from lspinstall.lspinstall_exceptions import PackageNotFoundError, RegistryError
from lspinstall.lspinstall_logger import LspInstallLogger
from lspinstall.lspinstall_settings import LspInstallSettings
from lspinstall.lspinstall_utils import ProcessRunner
from lspinstall.package_models import RegistryEntry, RegistrySpec, render_command
from lspinstall.registry.handle import InstallHandle


class CommandPackage:
    """
    Install-state of one package of a CommandRegistry.
    """

    def __init__(self, name: str, entry: RegistryEntry, registry: "CommandRegistry"):
        self.name = name
        self.entry = entry
        self.registry = registry
        self.lspconfig_name: Optional[str] = entry.lspconfig
        self.filetypes: List[str] = list(entry.filetypes)
        self._installed_version: Optional[str] = None
        self._latest_version: Optional[str] = entry.latest
        self._installing = False
        # Bumped when an install finishes, older installed-version answers are dropped
        self._generation = 0

    def get_installed_version(self) -> Optional[str]:
        return self._installed_version

    def is_installed(self) -> bool:
        return self._installed_version is not None

    def get_latest_version(self) -> str:
        if self._latest_version is None:
            raise RegistryError(f"Latest version of {self.name} is unknown, refresh the registry")
        return self._latest_version

    def is_installing(self) -> bool:
        return self._installing

    def install(self, version: str) -> InstallHandle:
        handle = InstallHandle()
        self._installing = True
        self.registry.spawn(self._run_install(version, handle))
        return handle

    async def _run_install(self, version: str, handle: InstallHandle) -> None:
        install_dir = self.registry.install_location(self.name)
        argv = self._render(self.entry.install, version=version)
        try:
            install_dir.mkdir(parents=True, exist_ok=True)
            result = await self.registry.process_runner.run(
                argv, cwd=install_dir, on_stderr=handle.emit_stderr
            )
            if not result.ok:
                handle.emit_stderr(
                    f"install command exited with status {result.returncode}\n"
                )
            self._generation += 1
            await self.query_installed_version()
        except Exception as e:
            handle.emit_stderr(f"{e}\n")
        finally:
            self._installing = False
            handle.close()

    async def query_installed_version(self) -> Optional[str]:
        """
        Run the installed_version command and cache its answer.
        """
        argv = self._render(self.entry.installed_version)
        install_dir = self.registry.install_location(self.name)
        generation = self._generation
        try:
            result = await self.registry.process_runner.run(
                argv, cwd=install_dir if install_dir.is_dir() else None
            )
        except OSError as e:
            self.registry.logger.log(
                f"Failed to query the installed version of {self.name}: {e}",
                logging.WARNING,
            )
            result = None

        if generation != self._generation:
            # An install finished while the query ran, its own answer is newer
            return self._installed_version
        self._installed_version = (
            self.entry.parse_version(result.stdout) if result is not None and result.ok else None
        )
        return self._installed_version

    async def query_latest_version(self) -> Optional[str]:
        """
        Run the latest_version command, keeping the previous answer on failure.
        """
        if self.entry.latest_version is None:
            return self._latest_version

        argv = self._render(self.entry.latest_version)
        try:
            result = await self.registry.process_runner.run(argv)
        except OSError as e:
            self.registry.logger.log(
                f"Failed to query the latest version of {self.name}: {e}",
                logging.WARNING,
            )
            return self._latest_version

        latest = self.entry.parse_version(result.stdout) if result.ok else None
        if latest is None:
            self.registry.logger.log(
                f"Latest version command for {self.name} returned nothing usable: {result.stderr.strip()}",
                logging.WARNING,
            )
            return self._latest_version

        self._latest_version = latest
        return latest

    def _render(self, template: List[str], version: str = "") -> List[str]:
        return render_command(
            template,
            name=self.name,
            version=version or (self._latest_version or ""),
            install_dir=str(self.registry.install_location(self.name)),
        )

    def __repr__(self) -> str:
        return (
            f"CommandPackage(name={self.name}, "
            f"installed={self._installed_version}, installing={self._installing})"
        )


class CommandRegistry:
    """
    PackageRegistry implementation driven by the [registry] section of lspinstall.toml.

    refresh() re-reads the installed and latest versions of every package, at
    most once per refresh_ttl seconds. Concurrent callers share the refresh that is
    already running.
    """

    def __init__(
        self,
        spec: RegistrySpec,
        logger: LspInstallLogger,
        process_runner: Optional[ProcessRunner] = None,
    ):
        """
        Initialize the registry.

        Args:
            spec: The validated [registry] section
            logger: Logger for refresh and query problems
            process_runner: Runs the external installer commands
        """
        self.spec = spec
        self.logger = logger
        self.process_runner = process_runner or ProcessRunner()
        self.install_root = pathlib.Path(
            spec.install_root or LspInstallSettings.get_install_root()
        ).expanduser()
        self.packages: Dict[str, CommandPackage] = {
            name: CommandPackage(name, entry, self) for name, entry in spec.packages.items()
        }
        self._last_refresh: Optional[float] = None
        self._refreshing: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()

    async def refresh(self) -> None:
        if self._last_refresh is not None and (
            time.monotonic() - self._last_refresh < self.spec.refresh_ttl
        ):
            return

        if self._refreshing is None:
            self._refreshing = asyncio.get_running_loop().create_task(self._refresh())
            self._refreshing.add_done_callback(self._refresh_done)
        await asyncio.shield(self._refreshing)

    def _refresh_done(self, task: asyncio.Task) -> None:
        self._refreshing = None

    async def _refresh(self) -> None:
        if self.spec.refresh is not None:
            try:
                result = await self.process_runner.run(self.spec.refresh)
                if not result.ok:
                    self.logger.log(
                        f"Registry refresh command failed with non-zero exit status "
                        f"({result.returncode}): {result.stderr.strip()}",
                        logging.ERROR,
                    )
            except OSError as e:
                self.logger.log(f"Registry refresh command failed: {e}", logging.ERROR)

        queries = []
        for package in self.packages.values():
            queries.append(package.query_installed_version())
            queries.append(package.query_latest_version())
        await asyncio.gather(*queries)

        self._last_refresh = time.monotonic()

    def get_package(self, name: str) -> CommandPackage:
        try:
            return self.packages[name]
        except KeyError:
            raise PackageNotFoundError(name) from None

    def install_location(self, name: str) -> pathlib.Path:
        return self.install_root / name

    def spawn(self, coro) -> asyncio.Task:
        """
        Run the coroutine in the background, keeping a reference until it is done.
        """
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task
