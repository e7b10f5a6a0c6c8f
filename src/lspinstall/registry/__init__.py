"""
Package registry collaborators.

This package handles:
1. The protocols lspinstall expects from a package registry
2. The handle reporting on a running install
3. A registry driving an external command-line installer
"""

from .base import PackageRegistry, RegistryPackage
from .command_registry import CommandPackage, CommandRegistry
from .handle import InstallHandle

__all__ = [
    "PackageRegistry",
    "RegistryPackage",
    "InstallHandle",
    "CommandRegistry",
    "CommandPackage",
]
