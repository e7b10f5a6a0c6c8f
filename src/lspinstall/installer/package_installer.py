"""
Dependency-aware installer.

Ensures a package tree is installed at the requested versions:
1. Refreshes the registry
2. Ensures every dependency (recursively, in parallel)
3. Installs the package itself once all dependencies succeeded
4. Runs the package's post-install hooks

Every step reports a boolean outcome; nothing raises out of a traversal.
"""

import asyncio
import logging
from typing import Callable, Optional, Set

from lspinstall.installer.fanin import gather_all
from lspinstall.installer.hooks import HookRunner
from lspinstall.installer.package_node import PackageNode
from lspinstall.installer.results import InstallResult, aggregate
from lspinstall.lspinstall_logger import LspInstallLogger
from lspinstall.lspinstall_utils import ProcessRunner
from lspinstall.registry.base import PackageRegistry

OnDone = Callable[[bool, bool], None]


class InstallTracker:
    """
    Names of the packages whose install is in flight.

    try_acquire() checks and marks a name without suspending, so two traversals
    sharing a tracker can never both start installing the same package.
    """

    def __init__(self) -> None:
        self._names: Set[str] = set()

    def try_acquire(self, name: str) -> bool:
        if name in self._names:
            return False
        self._names.add(name)
        return True

    def release(self, name: str) -> None:
        self._names.discard(name)

    def __contains__(self, name: str) -> bool:
        return name in self._names


class PackageInstaller:
    """
    Installs package trees through a registry.
    """

    def __init__(
        self,
        registry: PackageRegistry,
        logger: LspInstallLogger,
        process_runner: Optional[ProcessRunner] = None,
        tracker: Optional[InstallTracker] = None,
    ):
        """
        Initialize the installer.

        Args:
            registry: The registry holding the install-state of every package
            logger: Logger for progress and failures
            process_runner: Runs the command hooks
            tracker: In-flight installs, share one tracker between installers
                working on the same registry
        """
        self.registry = registry
        self.logger = logger
        self.tracker = tracker or InstallTracker()
        self.hook_runner = HookRunner(logger, process_runner)
        self._tasks: Set[asyncio.Task] = set()

    async def ensure_all(self, node: PackageNode) -> InstallResult:
        """
        Ensure the package and all its dependencies are installed.

        Dependencies are handled first, in parallel. The package itself is only
        attempted when every dependency succeeded.

        Returns:
            InstallResult(success, was_updated) for the whole subtree
        """
        await self.registry.refresh()

        if not node.has_dependencies:
            return await self.ensure_installed(node)

        dependencies = await self.ensure_dependencies(node)
        if not dependencies.success:
            return InstallResult(False, dependencies.was_updated)

        result = await self.ensure_installed(node)
        return InstallResult(result.success, dependencies.was_updated or result.was_updated)

    def schedule_ensure_all(
        self, node: PackageNode, on_done: Optional[OnDone] = None
    ) -> "asyncio.Task[InstallResult]":
        """
        Start ensure_all() in the background.

        on_done(success, was_updated) is called exactly once when the traversal ends.
        Must be called from a running event loop.
        """
        task = asyncio.get_running_loop().create_task(self._run_and_report(node, on_done))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run_and_report(self, node: PackageNode, on_done: Optional[OnDone]) -> InstallResult:
        try:
            result = await self.ensure_all(node)
        except Exception as e:
            self.logger.log(f"Failed to ensure {node.name} is installed: {e}", logging.ERROR)
            result = InstallResult(False, False)

        if on_done is not None:
            on_done(result.success, result.was_updated)
        return result

    async def ensure_dependencies(self, node: PackageNode) -> InstallResult:
        """
        Ensure all dependencies of the package are installed, in parallel.

        Returns:
            AND of the dependencies' success, OR of their was_updated
        """
        if not node.has_dependencies:
            return InstallResult(True, False)

        results = await gather_all(
            (self.ensure_all(dependency) for dependency in node.dependencies),
            on_error=lambda e: self._failed_traversal(node, e),
        )
        return aggregate(results)

    async def ensure_installed(self, node: PackageNode) -> InstallResult:
        """
        Install the package only if it is missing or at another version.
        """
        if node.registry_package.get_installed_version() != node.version:
            return await self.install(node)
        return InstallResult(True, False)

    async def install(self, node: PackageNode) -> InstallResult:
        """
        Install the package's version and run its post-install hooks.

        An install already in flight for the same name makes this a successful
        no-op: the request is neither queued nor waited for.

        Returns:
            InstallResult where was_updated compares the installed version before
            and after the install, whatever the install reported
        """
        package = node.registry_package
        if package.is_installing() or not self.tracker.try_acquire(node.name):
            return InstallResult(True, False)

        try:
            previous = package.get_installed_version()
            version_str = f"{previous} -> {node.version}" if previous else node.version
            self.logger.log(f"Installing {node.name} {version_str}", logging.INFO)

            stderr = []
            try:
                handle = package.install(node.version)
                handle.on_stderr(stderr.append)
                await handle.wait_closed()
            except Exception as e:
                stderr.append(str(e))

            was_updated = previous != package.get_installed_version()
            if not package.is_installed():
                self.logger.log(
                    f"Failed to install {node.name}: {''.join(stderr)}", logging.ERROR
                )
                return InstallResult(False, was_updated)
            installed = package.get_installed_version()
        finally:
            self.tracker.release(node.name)

        if installed != node.version:
            self.logger.log(
                f"Installed {node.name} {installed} but {node.version} was requested",
                logging.WARNING,
            )
        self.logger.log(f"Successfully installed {node.name}", logging.INFO)
        hooks_succeeded = await self.hook_runner.run_hooks(
            node.post_install_hooks, node, self.registry.install_location(node.name)
        )
        return InstallResult(hooks_succeeded, was_updated)

    def _failed_traversal(self, parent: PackageNode, error: Exception) -> InstallResult:
        self.logger.log(
            f"Failed to ensure a dependency of {parent.name} is installed: {error}",
            logging.ERROR,
        )
        return InstallResult(False, False)
