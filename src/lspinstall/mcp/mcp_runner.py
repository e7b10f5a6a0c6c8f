"""
MCP (Model Context Protocol) runner for lspinstall.

This module exposes lspinstall through MCP tools using the fastmcp framework.
It uses an `lspinstall.toml` configuration file in the workspace root to know
which packages to manage and how the registry installs them.

Workflow:
- If lspinstall.toml exists at the first tool call: config is loaded and the
  packages are built
- If it is missing: every tool returns an error with the expected schema, and
  loading is retried on the next call
"""

import asyncio
import json
import logging
import os
from typing import Any, Dict, Optional

from fastmcp import FastMCP

from lspinstall.auto_install import AutoInstaller
from lspinstall.lspinstall_config import LSPINSTALL_TOML_SCHEMA, LspInstallConfig
from lspinstall.lspinstall_exceptions import LspInstallException, PackageNotFoundError
from lspinstall.lspinstall_logger import LspInstallLogger
from lspinstall.lspinstall_settings import LspInstallSettings
from lspinstall.registry import CommandRegistry


class MCPToolError(LspInstallException):
    """Base exception for MCP tool errors."""

    pass


class MCPRunner:
    """
    MCP runner that manages an AutoInstaller and exposes it as MCP tools.

    Example usage:
    ```python
    runner = MCPRunner("/path/to/workspace")
    server = runner.create_mcp_server()
    server.run()
    ```
    """

    def __init__(self, workspace_root: Optional[str] = None):
        """
        Initialize the MCP runner.

        Args:
            workspace_root: Directory holding lspinstall.toml. If None, uses current directory.
        """
        self.workspace_root = workspace_root or os.getcwd()
        self.logger = LspInstallLogger()
        self.config: Optional[LspInstallConfig] = None
        self.auto_installer: Optional[AutoInstaller] = None
        self._setup_lock = asyncio.Lock()

    @property
    def config_path(self) -> str:
        return os.path.join(self.workspace_root, LspInstallSettings.CONFIG_FILE_NAME)

    async def _ensure_configured(self) -> bool:
        """
        Load lspinstall.toml and set up the packages if not done yet.

        Returns:
            True if configured (either already or just loaded), False otherwise
        """
        async with self._setup_lock:
            if self.auto_installer is not None:
                return True

            if not os.path.exists(self.config_path):
                return False

            try:
                self.config = LspInstallConfig.from_file(self.config_path)
            except LspInstallException as e:
                self.logger.log(
                    f"Failed to load {self.config_path}: {e}", logging.ERROR
                )
                return False

            registry = CommandRegistry(self.config.registry, self.logger)
            auto_installer = AutoInstaller(self.config, registry, self.logger)
            await auto_installer.setup()
            self.auto_installer = auto_installer
            return True

    def get_configuration_error_message(self) -> str:
        return (
            "lspinstall is not configured.\n\n"
            f"Please create an '{LspInstallSettings.CONFIG_FILE_NAME}' file in your "
            "workspace root with the following schema:\n\n"
            f"{LSPINSTALL_TOML_SCHEMA}"
        )

    def _not_configured(self) -> str:
        return json.dumps(
            {"status": "error", "message": self.get_configuration_error_message()}
        )

    async def ensure_installed(self, name: str) -> str:
        if not await self._ensure_configured():
            return self._not_configured()

        try:
            task = self.auto_installer.ensure_package(name)
        except PackageNotFoundError as e:
            raise MCPToolError(str(e))

        success, was_updated = await task
        return json.dumps(
            {
                "status": "success" if success else "error",
                "package": name,
                "success": success,
                "was_updated": was_updated,
            }
        )

    async def notify_filetype(self, filetype: str) -> str:
        if not await self._ensure_configured():
            return self._not_configured()

        triggered = self.auto_installer.handle_filetype(filetype)
        results = await asyncio.gather(*(task for _, task in triggered))
        return json.dumps(
            {
                "status": "success",
                "triggered": [
                    {"package": node.name, "success": result.success, "was_updated": result.was_updated}
                    for (node, _), result in zip(triggered, results)
                ],
            }
        )

    async def list_packages(self) -> str:
        if not await self._ensure_configured():
            return self._not_configured()

        packages = []
        for root in self.auto_installer.packages:
            packages.append(self._describe(root))
        return json.dumps({"status": "success", "packages": packages})

    def _describe(self, node) -> Dict[str, Any]:
        return {
            "name": node.name,
            "version": node.version,
            "installed_version": node.registry_package.get_installed_version(),
            "filetypes": node.filetypes,
            "dependencies": [self._describe(dep) for dep in node.dependencies],
        }

    def create_mcp_server(self) -> FastMCP:
        """
        Create and configure a fastmcp server with the lspinstall tools.
        """
        server = FastMCP("lspinstall-mcp")
        self._register_tools(server)
        return server

    def _register_tools(self, server: FastMCP) -> None:
        @server.tool()
        async def lspinstall_ensure_installed(name: str) -> str:
            """Install a configured package and its dependencies at their configured versions.

            Args:
                name: Name of a package listed in lspinstall.toml
            """
            return await self.ensure_installed(name)

        @server.tool()
        async def lspinstall_notify_filetype(filetype: str) -> str:
            """Report that a file of this filetype was opened, installing the packages it triggers.

            Args:
                filetype: Filetype such as 'python' or 'lua'
            """
            return await self.notify_filetype(filetype)

        @server.tool()
        async def lspinstall_list_packages() -> str:
            """List the configured package trees with their target and installed versions."""
            return await self.list_packages()


def main() -> None:
    MCPRunner().create_mcp_server().run()


__all__ = [
    "MCPRunner",
    "MCPToolError",
    "main",
]
