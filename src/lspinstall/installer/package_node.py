"""
The package tree traversed by the installer.
"""

import dataclasses
from typing import List, Optional

from lspinstall.installer.hooks import Hook
from lspinstall.registry.base import RegistryPackage


@dataclasses.dataclass(frozen=True, eq=False)
class PackageNode:
    """
    One package of the tree, with the version it must end up at.

    The tree is built once from the configuration and never changes during a
    traversal. The same package name may appear under several parents: each
    occurrence is its own node, but all of them share the install-state held by
    registry_package.
    """

    name: str
    version: str
    registry_package: RegistryPackage
    dependencies: List["PackageNode"] = dataclasses.field(default_factory=list)
    post_install_hooks: List[Hook] = dataclasses.field(default_factory=list)
    # Trigger metadata, the installer never looks at it
    filetypes: List[str] = dataclasses.field(default_factory=list)
    lspconfig_name: Optional[str] = None

    @property
    def has_dependencies(self) -> bool:
        return len(self.dependencies) > 0

    def matches_filetype(self, filetype: str) -> bool:
        """A package without filetypes is triggered by any filetype."""
        return not self.filetypes or filetype in self.filetypes

    def __repr__(self) -> str:
        return (
            f"PackageNode(name={self.name}, version={self.version}, "
            f"dependencies={[dep.name for dep in self.dependencies]})"
        )
