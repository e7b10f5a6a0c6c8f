"""
Interfaces of the package registry that lspinstall drives.

The registry owns the install-state of every package (installed version and the
in-progress flag). lspinstall only reads that state and asks the registry to
install a given version; the install mechanism itself lives behind these protocols.
"""

import pathlib
from typing import List, Optional, Protocol, runtime_checkable

from lspinstall.registry.handle import InstallHandle


@runtime_checkable
class RegistryPackage(Protocol):
    """
    Install-state and install capability of one package, keyed by name.

    Every PackageNode with the same name shares the same RegistryPackage.
    """

    name: str
    lspconfig_name: Optional[str]
    filetypes: List[str]

    def get_installed_version(self) -> Optional[str]:
        """The installed version, or None when the package is not installed."""
        ...

    def is_installed(self) -> bool:
        ...

    def get_latest_version(self) -> str:
        ...

    def is_installing(self) -> bool:
        ...

    def install(self, version: str) -> InstallHandle:
        """Start installing the version. Must be called from a running event loop."""
        ...


@runtime_checkable
class PackageRegistry(Protocol):
    """
    Process-wide registry of packages.
    """

    async def refresh(self) -> None:
        """Refresh the registry metadata. Idempotent, expected to be cached."""
        ...

    def get_package(self, name: str) -> RegistryPackage:
        """
        Raises:
            PackageNotFoundError: If no package has this name
        """
        ...

    def install_location(self, name: str) -> pathlib.Path:
        """The directory post-install commands of the package run in."""
        ...
