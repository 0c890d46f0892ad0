"""Structured logging for Folio.

The engine modules log through module-level ``structlog.get_logger()`` and
never configure anything themselves. A host application (CLI, API, notebook)
calls ``LoggerFactory.configure()`` once to decide where those events go:

    >>> LoggerFactory.configure(LoggingConfig(level="DEBUG"))
    >>> LoggerFactory.get_logger().info("reporting.profitability_built", assets=3)

Until ``configure()`` runs, structlog's own defaults apply: every event,
DEBUG included, is printed to stdout with no level filtering. Hosts that
want quiet engine calls configure logging at startup.

Event names are dotted (``position.reduced``, ``irr.not_converged``); context
travels as key/value pairs, rendered as colored text on the console and as
JSON lines in files.
"""

import inspect
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Literal

import structlog
from pydantic import BaseModel, Field

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
TimestampFormat = Literal["iso", "compact", "time", "short"]

DEFAULT_LOG_FILE = Path("logs/folio.log")


class LoggingConfig(BaseModel):
    """Configuration for logging system.

    What each level carries:

    INFO:
    - Reports built (profitability, distributions, dashboard)

    DEBUG:
    - Per-asset position reductions
    - Return calculators answering None (insufficient data, no convergence)
    - Solver iteration counts

    WARNING:
    - Assets without asset-type metadata during aggregation

    Timestamp formats:
    - "iso": 2025-10-22T20:50:07.288824+00:00
    - "compact": 251022-205007.28 (YYMMDD-HHMMSS.cs)
    - "time": 20:50:07.28
    - "short": 1022T205007
    """

    level: LogLevel = Field(default="INFO", description="Minimum level for console output")
    format: Literal["console", "json"] = Field(default="console", description="Console output format")
    timestamp_format: TimestampFormat = Field(default="compact", description="Timestamp style")
    enable_file: bool = Field(default=False, description="Also write JSON lines to a file")
    file_path: Path | None = Field(default=None, description="Log file (logs/folio.log if None)")
    file_level: LogLevel = Field(default="WARNING", description="Minimum level for file output")
    file_rotation: bool = Field(default=True, description="Rotate the file by size")
    max_file_size_mb: int = Field(default=10, description="Rotation threshold in MB")
    backup_count: int = Field(default=3, description="Rotated files to keep")


class LogTimestamper:
    """Processor adding a ``log_timestamp`` key (UTC) in the configured style."""

    def __init__(self, fmt: TimestampFormat = "compact") -> None:
        self.fmt = fmt

    def __call__(self, logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        now = datetime.now(timezone.utc)
        centis = now.microsecond // 10000

        if self.fmt == "compact":
            stamp = now.strftime("%y%m%d-%H%M%S") + f".{centis:02d}"
        elif self.fmt == "time":
            stamp = now.strftime("%H:%M:%S") + f".{centis:02d}"
        elif self.fmt == "short":
            stamp = now.strftime("%m%dT%H%M%S")
        else:
            stamp = now.isoformat()

        event_dict["log_timestamp"] = stamp
        return event_dict


class ConsoleRenderer:
    """Render ``timestamp [level] event | key=value (logger.module:line)`` with ANSI colors."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"
    DIM = "\033[90m"

    def __call__(self, logger: Any, name: str, event_dict: dict[str, Any]) -> str:
        stamp = event_dict.pop("log_timestamp", "")
        level = str(event_dict.pop("level", "info")).upper()
        event = event_dict.pop("event", "")
        filename = event_dict.pop("filename", "")
        lineno = event_dict.pop("lineno", "")
        logger_name = event_dict.pop("logger", "")

        parts = [stamp, f"[{self.LEVEL_COLORS.get(level, '')}{level.lower()}{self.RESET}]", str(event)]

        context = " ".join(f"{key}={value}" for key, value in sorted(event_dict.items()) if not key.startswith("_"))
        if context:
            parts.append(f"{self.DIM}|{self.RESET} {context}")

        location = self._location(logger_name, filename, lineno)
        if location:
            parts.append(f"{self.DIM}({location}){self.RESET}")

        return " ".join(part for part in parts if part)

    @staticmethod
    def _location(logger_name: str, filename: str, lineno: Any) -> str:
        if not filename or not lineno:
            return ""
        module = Path(filename).stem
        if logger_name and logger_name != "folio":
            return f"{logger_name}.{module}:{lineno}"
        return f"{module}:{lineno}"


class LoggerFactory:
    """
    Configures structlog over stdlib logging and hands out loggers.

    Class-level state: configuration is process-wide, like the logging
    module it drives.
    """

    _config: LoggingConfig | None = None
    _configured: bool = False

    @classmethod
    def configure(cls, config: LoggingConfig | None = None) -> None:
        """
        Install console (and optionally file) handlers and configure structlog.

        Args:
            config: Logging settings (defaults to LoggingConfig())
        """
        config = config or LoggingConfig()
        if config.enable_file and config.file_path is None:
            config = config.model_copy(update={"file_path": DEFAULT_LOG_FILE})

        pre_chain = cls._shared_processors(config.timestamp_format)

        console_renderer: Any = ConsoleRenderer() if config.format == "console" else structlog.processors.JSONRenderer()
        handlers = [cls._handler(logging.StreamHandler(sys.stdout), config.level, console_renderer, pre_chain)]
        root_level = getattr(logging, config.level)

        if config.enable_file:
            handlers.append(
                cls._handler(
                    cls._open_file(config),
                    config.file_level,
                    structlog.processors.JSONRenderer(),
                    pre_chain,
                )
            )
            root_level = min(root_level, getattr(logging, config.file_level))

        logging.basicConfig(level=root_level, handlers=handlers, force=True)

        if config.format == "console":
            exc_processors: list[Any] = [
                structlog.dev.set_exc_info,
                structlog.processors.ExceptionRenderer(structlog.dev.plain_traceback),  # type: ignore[arg-type]
            ]
        else:
            exc_processors = [structlog.processors.format_exc_info]

        structlog.configure(
            processors=[*pre_chain, *exc_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )

        cls._config = config
        cls._configured = True

    @staticmethod
    def _shared_processors(timestamp_format: TimestampFormat) -> list[Any]:
        return [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            LogTimestamper(timestamp_format),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.CallsiteParameterAdder(
                [
                    structlog.processors.CallsiteParameter.FILENAME,
                    structlog.processors.CallsiteParameter.LINENO,
                ]
            ),
        ]

    @staticmethod
    def _handler(handler: logging.Handler, level: LogLevel, renderer: Any, pre_chain: list[Any]) -> logging.Handler:
        handler.setLevel(getattr(logging, level))
        handler.setFormatter(structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=pre_chain))
        return handler

    @staticmethod
    def _open_file(config: LoggingConfig) -> logging.Handler:
        path = config.file_path or DEFAULT_LOG_FILE
        path.parent.mkdir(parents=True, exist_ok=True)

        if config.file_rotation:
            return RotatingFileHandler(
                filename=str(path),
                maxBytes=config.max_file_size_mb * 1024 * 1024,
                backupCount=config.backup_count,
                encoding="utf-8",
            )
        return logging.FileHandler(filename=str(path), encoding="utf-8")

    @classmethod
    def get_logger(cls, name: str | None = None):
        """
        Get a logger, configuring defaults on first use.

        Args:
            name: Logger name (defaults to the caller's module name)
        """
        if not cls._configured:
            cls.configure()

        if name is None:
            caller = inspect.currentframe()
            caller = caller.f_back if caller else None
            name = caller.f_globals.get("__name__", "folio") if caller else "folio"

        return structlog.get_logger(name)

    @classmethod
    def get_config(cls) -> LoggingConfig:
        """Active configuration, or defaults when not configured."""
        return cls._config or LoggingConfig()

    @classmethod
    def is_configured(cls) -> bool:
        return cls._configured

    @classmethod
    def reset(cls) -> None:
        """Remove all root handlers and structlog configuration (used by tests)."""
        root = logging.getLogger()
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()
        root.setLevel(logging.NOTSET)
        structlog.reset_defaults()
        cls._config = None
        cls._configured = False
