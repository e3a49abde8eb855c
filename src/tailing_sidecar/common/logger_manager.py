import builtins
import logging
import sys
from typing import Final

import rich
from injector import inject
from rich.console import Console
from rich.logging import RichHandler

from tailing_sidecar.common.config import Config, Option

CONSOLE_WIDTH: Final = 140
DEFAULT_LOGGER_NAME: Final = "tailing-sidecar-operator"
LOG_FORMAT: Final = "%(asctime)s %(levelname)s %(name)s %(message)s"


class LoggerManager:
    """Configure the application logger: one handler, Rich console or plain stdout"""

    _logger: logging.Logger

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    @inject
    def __init__(self, config: Config):
        self._logger = logging.getLogger(config.get(Option.APP_NAME, DEFAULT_LOGGER_NAME))
        self._logger.handlers.clear()
        self._logger.addHandler(LoggerManager._build_handler(config.get_bool(Option.LOG_RICH_ENABLED)))
        self._logger.setLevel(LoggerManager._log_level(config))
        self._logger.propagate = False

    @staticmethod
    def _log_level(config: Config) -> int:
        level = logging.getLevelName(str(config.get(Option.LOG_LEVEL, "INFO")).strip().upper())
        # getLevelName maps unknown names to "Level <name>"
        return level if isinstance(level, int) else logging.INFO

    @staticmethod
    def _build_handler(rich_enabled: bool) -> logging.Handler:
        if rich_enabled:
            builtins.print = rich.print
            # https://rich.readthedocs.io/en/stable/logging.html#logging-handler
            return RichHandler(console=Console(width=CONSOLE_WIDTH))
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        return handler
