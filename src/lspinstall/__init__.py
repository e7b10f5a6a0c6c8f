"""
lspinstall ensures declared packages (language servers, linters, formatters, ...)
and their dependencies are installed at the desired versions.
"""

from .auto_install import AutoInstaller
from .installer import InstallResult, PackageInstaller, PackageNode
from .lspinstall_config import LspInstallConfig
from .lspinstall_logger import LspInstallLogger

__all__ = [
    "AutoInstaller",
    "PackageInstaller",
    "PackageNode",
    "InstallResult",
    "LspInstallConfig",
    "LspInstallLogger",
]
