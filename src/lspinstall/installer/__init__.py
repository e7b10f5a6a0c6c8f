"""
Dependency-aware package installation.

This package handles:
1. The package tree (PackageNode) and the result of a traversal
2. Ensuring dependencies are installed before their dependents
3. Guarding against installing the same package twice at once
4. Running post-install hooks
"""

from .hooks import CallbackHook, CommandHook, Hook, HookOutcome, HookRunner, to_hook
from .package_installer import InstallTracker, PackageInstaller
from .package_node import PackageNode
from .results import InstallResult, aggregate

__all__ = [
    "PackageInstaller",
    "InstallTracker",
    "PackageNode",
    "InstallResult",
    "aggregate",
    "Hook",
    "CommandHook",
    "CallbackHook",
    "HookOutcome",
    "HookRunner",
    "to_hook",
]
