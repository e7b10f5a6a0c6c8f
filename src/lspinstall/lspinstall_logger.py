"""
Logger used across lspinstall.
"""

import logging


class LspInstallLogger:
    """
    Logger class wrapping the standard logging module.

    Every component receives an instance of this class instead of reaching for a
    module-level logger, so callers can route lspinstall output wherever they need.
    """

    def __init__(self, name: str = "lspinstall") -> None:
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)

    def log(self, message: str, level: int) -> None:
        """
        Log the message at the given level.

        Args:
            message: The message to log
            level: A level from the logging module (logging.INFO, logging.ERROR, ...)
        """
        self.logger.log(level=level, msg=message)
