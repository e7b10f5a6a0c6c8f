"""
Event-triggered installation.

Packages are installed the first time a file of one of their filetypes is opened.
Listeners registered with on_updated() learn about packages whose installed
version changed, which is where an editor integration restarts the language
server clients of that package.
"""

import asyncio
import logging
from typing import Callable, List, Optional, Tuple

from lspinstall.installer import InstallTracker, PackageInstaller, PackageNode
from lspinstall.lspinstall_config import LspInstallConfig
from lspinstall.lspinstall_exceptions import PackageNotFoundError
from lspinstall.lspinstall_logger import LspInstallLogger
from lspinstall.package_config import PackageConfigManager
from lspinstall.registry.base import PackageRegistry

UpdateListener = Callable[[PackageNode], None]


class AutoInstaller:
    """
    Installs configured packages when their filetypes are opened.

    Example usage:
    ```python
    installer = AutoInstaller(config, registry)
    installer.on_updated(lambda node: restart_clients(node.lspconfig_name))
    await installer.setup()

    # From the editor's FileType event
    installer.handle_filetype("python")
    ```
    """

    def __init__(
        self,
        config: LspInstallConfig,
        registry: PackageRegistry,
        logger: Optional[LspInstallLogger] = None,
        installer: Optional[PackageInstaller] = None,
    ):
        self.config = config
        self.registry = registry
        self.logger = logger or LspInstallLogger()
        self.installer = installer or PackageInstaller(
            registry, self.logger, tracker=InstallTracker()
        )
        self.config_manager = PackageConfigManager(registry, self.logger)
        self.packages: List[PackageNode] = []
        self._pending: List[PackageNode] = []
        self._listeners: List[UpdateListener] = []

    async def setup(self) -> None:
        """
        Refresh the registry and build the configured packages.

        Calling setup() again rebuilds the packages and re-arms every trigger.
        """
        await self.registry.refresh()
        self.packages = self.config_manager.create_packages(self.config.packages)
        self._pending = list(self.packages)
        self.logger.log(
            f"Managing packages: {[package.name for package in self.packages]}",
            logging.INFO,
        )

    def on_updated(self, listener: UpdateListener) -> None:
        self._listeners.append(listener)

    def handle_filetype(self, filetype: str) -> List[Tuple[PackageNode, "asyncio.Task"]]:
        """
        Start installing every package triggered by the filetype.

        Each package is triggered at most once per setup(). Packages without
        filetypes are triggered by the first filetype opened.

        Returns:
            The triggered packages with the tasks of their traversals
        """
        triggered = [node for node in self._pending if node.matches_filetype(filetype)]
        self._pending = [node for node in self._pending if node not in triggered]
        return [(node, self._start(node)) for node in triggered]

    def ensure_package(self, name: str) -> "asyncio.Task":
        """
        Start installing a configured package, whether it was triggered before or not.

        Raises:
            PackageNotFoundError: If no configured package has this name
        """
        for node in self.packages:
            if node.name == name:
                return self._start(node)
        raise PackageNotFoundError(name)

    def _start(self, node: PackageNode) -> "asyncio.Task":
        return self.installer.schedule_ensure_all(
            node, lambda success, was_updated: self._on_done(node, success, was_updated)
        )

    def _on_done(self, node: PackageNode, success: bool, was_updated: bool) -> None:
        if not (success and was_updated):
            return
        for listener in self._listeners:
            try:
                listener(node)
            except Exception as e:
                self.logger.log(
                    f"Update listener failed for {node.name}: {e}", logging.ERROR
                )
