"""
Declaration models for lspinstall.

This package provides Pydantic data models for parsing the package declarations
and the registry description found in lspinstall.toml.
"""

from .package_spec import (
    PackageSpec,
    format_validation_error,
)
from .registry_spec import (
    RegistryEntry,
    RegistrySpec,
    render_command,
)

__all__ = [
    # Package declarations
    "PackageSpec",
    "format_validation_error",
    # Registry
    "RegistryEntry",
    "RegistrySpec",
    "render_command",
]
