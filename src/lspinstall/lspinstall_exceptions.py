"""
This module contains the exceptions raised by lspinstall.

Exceptions are only raised while configuration is loaded and package trees are
built. Once a traversal is running, every failure is reported as a boolean.
"""


class LspInstallException(Exception):
    """
    Base class for all lspinstall exceptions.
    """

    def __init__(self, message: str):
        super().__init__(message)


class ConfigurationError(LspInstallException):
    """Raised when a configuration file or a package declaration is invalid."""

    pass


class PackageNotFoundError(LspInstallException):
    """Raised when the registry has no package with the requested name."""

    def __init__(self, name: str):
        super().__init__(f"Package not found: {name}")
        self.name = name


class RegistryError(LspInstallException):
    """Raised when the registry cannot answer a metadata query."""

    pass
