"""
Package configuration management.

This package handles:
1. Validating package declarations
2. Resolving default versions and filetypes through the registry
3. Building the package trees handed to the installer
"""

from .config_manager import PackageConfigManager

__all__ = ["PackageConfigManager"]
