"""
Defines the default settings for lspinstall.
"""

import os
import pathlib


class LspInstallSettings:
    """
    Provides the default directories and file names used by lspinstall.
    """

    CONFIG_FILE_NAME = "lspinstall.toml"

    @staticmethod
    def get_install_root() -> str:
        """
        Returns the directory under which packages get one install directory each.

        The LSPINSTALL_HOME environment variable takes precedence over the default.
        """
        override = os.environ.get("LSPINSTALL_HOME")
        if override:
            return str(pathlib.Path(override).expanduser())
        return str(pathlib.Path.home() / ".local" / "share" / "lspinstall" / "packages")
