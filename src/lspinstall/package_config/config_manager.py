"""
Package configuration manager.

Turns validated package declarations into the PackageNode trees the installer
traverses, resolving default versions and filetypes through the registry.
"""

import logging
from typing import Any, List, Sequence

from pydantic import ValidationError

from lspinstall.installer.hooks import to_hook
from lspinstall.installer.package_node import PackageNode
from lspinstall.lspinstall_exceptions import ConfigurationError, LspInstallException
from lspinstall.lspinstall_logger import LspInstallLogger
from lspinstall.package_models import PackageSpec, format_validation_error
from lspinstall.registry.base import PackageRegistry


class PackageConfigManager:
    """
    Builds package trees from declarations.

    Declarations that cannot be built are logged and skipped, so one broken entry
    does not prevent the others from being installed.
    """

    def __init__(self, registry: PackageRegistry, logger: LspInstallLogger):
        """
        Initialize the package config manager.

        Args:
            registry: Registry resolving package names, latest versions and metadata
            logger: Logger for entries that cannot be built
        """
        self.registry = registry
        self.logger = logger

    def create_packages(self, entries: Sequence[Any]) -> List[PackageNode]:
        """
        Build one tree per configuration entry.

        The registry must have been refreshed so latest versions are known.

        Args:
            entries: Package names, tables or PackageSpec objects

        Returns:
            The trees of every entry that could be built, in configuration order
        """
        packages = []
        for i, entry in enumerate(entries, 1):
            try:
                packages.append(self.create_package(entry))
            except LspInstallException as e:
                self.logger.log(f"Failed to create package [{i}]: {e}", logging.ERROR)
        return packages

    def create_package(self, entry: Any) -> PackageNode:
        """
        Build the tree of one declaration.

        Raises:
            ConfigurationError: If the declaration is invalid or names an unknown package
        """
        if not isinstance(entry, (str, dict, PackageSpec)):
            raise ConfigurationError(f"expected string or table, got {type(entry).__name__}")

        try:
            spec = PackageSpec.parse_entry(entry)
        except ValidationError as e:
            raise ConfigurationError(f"invalid options: {format_validation_error(e)}") from e

        return self._build(spec)

    def _build(self, spec: PackageSpec) -> PackageNode:
        try:
            registry_package = self.registry.get_package(spec.name)
            version = spec.version or registry_package.get_latest_version()
        except LspInstallException as e:
            raise ConfigurationError(
                f"Failed to get package {spec.name} from registry: {e}"
            ) from e

        lspconfig_name = getattr(registry_package, "lspconfig_name", None)
        if spec.filetypes is None and lspconfig_name:
            # Language servers default to the filetypes they serve
            filetypes = list(getattr(registry_package, "filetypes", None) or [])
        else:
            filetypes = list(spec.filetypes or [])

        dependencies = []
        for i, dependency in enumerate(spec.dependencies, 1):
            try:
                dependencies.append(self._build(dependency))
            except ConfigurationError as e:
                raise ConfigurationError(f"invalid dependency [{i}]: {e}") from e

        return PackageNode(
            name=spec.name,
            version=version,
            registry_package=registry_package,
            dependencies=dependencies,
            post_install_hooks=[to_hook(hook) for hook in spec.post_install_hooks],
            filetypes=filetypes,
            lspconfig_name=lspconfig_name,
        )
