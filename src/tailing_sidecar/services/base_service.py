from abc import ABC
from logging import Logger
from typing import Any, Callable, TypeVar

from tailing_sidecar.common.config import Config, Option

T = TypeVar("T")


class BaseService(ABC):

    config: Config
    logger: Logger

    def __init__(self, config: Config, logger: Logger):
        self.config = config
        self.logger = logger

    def _get_option(self, option: Option, default: T, cast: Callable[[Any], T] = str) -> T:
        """Get option value converted by `cast`, falling back to `default` when missing or invalid"""
        try:
            return self.config.get_as(option, default, cast)
        except ValueError as exc:
            self.logger.warning("%s, using default '%s'", exc, default)
            return default
