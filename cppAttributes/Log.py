"""Configure the shared logger for cppAttributes."""

import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from loguru import logger as _logger

if TYPE_CHECKING:
    from loguru import Logger

# Export listings are user-facing output, so console records carry no prefix.
CONSOLE_FORMAT = "<level>{message}</level>"
DEBUG_CONSOLE_FORMAT = (
    "<level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


class Log:
    """Single loguru configuration shared by the generators and the CLI.

    The first instantiation installs the sinks; later calls with arguments
    replace them, calls without arguments return the existing instance.
    """

    _instance: Optional["Log"] = None

    def __new__(cls: type["Log"], *args: Any, **kwargs: Any) -> "Log":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._configure(*args, **kwargs)
        elif args or kwargs:
            cls._instance._configure(*args, **kwargs)
        return cls._instance

    def _configure(
        self,
        log_file: str | Path | None = None,
        level: str = "INFO",
        debug_mode: bool = False,
        rotation: str = "5 MB",
        retention: int = 3,
    ) -> None:
        _logger.remove()
        _logger.add(
            sys.stdout,
            level="DEBUG" if debug_mode else level,
            format=DEBUG_CONSOLE_FORMAT if debug_mode else CONSOLE_FORMAT,
        )
        self.log_file = Path(log_file) if log_file is not None else None
        if self.log_file is None:
            return

        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        _logger.add(
            self.log_file,
            level="DEBUG",
            format=FILE_FORMAT,
            rotation=rotation,
            retention=retention,
        )

    @property
    def logger(self) -> "Logger":
        """Return the configured loguru logger."""
        return _logger

    @classmethod
    def current(cls) -> "Logger":
        """Return the loguru logger without installing or replacing sinks.

        Library code that is not asked for output logs through this, so a
        caller's own handlers stay in place until :class:`Log` is built.
        """
        return _logger
