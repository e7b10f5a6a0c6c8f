"""
Configuration parameters for lspinstall, loaded from lspinstall.toml.
"""

import pathlib
import tomllib
from typing import Any, Dict, List, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from lspinstall.lspinstall_exceptions import ConfigurationError
from lspinstall.package_models import PackageSpec, RegistrySpec, format_validation_error

LSPINSTALL_TOML_SCHEMA = """
# lspinstall configuration

[lspinstall]
# Packages to manage: names, or tables with name, version, filetypes,
# dependencies and post_install_hooks
packages = [
    "lua-language-server",
    { name = "pyright", version = "1.1.380" },
    { name = "jdtls", dependencies = ["java-debug-adapter"] },
    { name = "codelldb", post_install_hooks = [["chmod", "+x", "extension/adapter/codelldb"]] },
]

[registry]
# Optional registry-wide refresh command and how long a refresh stays valid
# refresh = ["npm", "ping"]
refresh_ttl = 3600
# install_root = "~/.local/share/lspinstall/packages"

[registry.packages.pyright]
install = ["npm", "install", "--prefix", "{install_dir}", "pyright@{version}"]
installed_version = ["npm", "ls", "--prefix", "{install_dir}", "pyright"]
version_pattern = "pyright@(\\\\S+)"
latest_version = ["npm", "view", "pyright", "version"]
lspconfig = "pyright"
filetypes = ["python"]
"""


class LspInstallConfig(BaseModel):
    """
    Configuration of an lspinstall setup.

    Package entries are only checked for their shape here. Each entry is fully
    validated when its package tree is built, so a broken entry is skipped on its
    own instead of rejecting the whole file.
    """

    model_config = ConfigDict(extra="forbid")

    packages: List[Union[str, Dict[str, Any], PackageSpec]] = Field(default_factory=list)
    registry: RegistrySpec = Field(default_factory=RegistrySpec)

    @field_validator("packages", mode="before")
    @classmethod
    def _check_packages(cls, packages: Any) -> Any:
        if not isinstance(packages, list):
            raise ValueError("packages must be a list")
        for i, entry in enumerate(packages, 1):
            if not isinstance(entry, (str, dict, PackageSpec)):
                raise ValueError(
                    f"packages[{i}] must be a string or table, got {type(entry).__name__}"
                )
        return packages

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "LspInstallConfig":
        """
        Create a config from a dictionary (loaded from TOML).

        Args:
            config_dict: Dictionary with the [lspinstall] and [registry] sections

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        unknown = set(config_dict) - {"lspinstall", "registry"}
        if unknown:
            raise ConfigurationError(f"Unknown configuration sections: {sorted(unknown)}")

        section = config_dict.get("lspinstall", {})
        if not isinstance(section, dict):
            raise ConfigurationError("[lspinstall] must be a table")
        unknown_options = set(section) - {"packages"}
        if unknown_options:
            raise ConfigurationError(
                f"Unknown options in [lspinstall]: {sorted(unknown_options)}"
            )

        try:
            return cls(
                packages=section.get("packages", []),
                registry=config_dict.get("registry", {}),
            )
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid setup options: {format_validation_error(e)}"
            ) from e

    @classmethod
    def from_file(cls, path: Union[str, pathlib.Path]) -> "LspInstallConfig":
        """
        Load lspinstall.toml.

        Raises:
            ConfigurationError: If the file cannot be read or is invalid
        """
        try:
            with open(path, "rb") as f:
                toml_dict = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigurationError(f"Failed to load {path}: {e}") from e
        return cls.from_dict(toml_dict)
