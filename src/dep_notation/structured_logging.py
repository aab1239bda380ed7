"""
Structured logging configuration for dep-notation.

Emits machine-readable JSON events for every declaration routed into a
configuration bucket and for every deferred entry realized later.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_RESERVED_ATTRIBUTES = frozenset(
    [
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "exc_info",
        "exc_text",
        "stack_info",
        "message",
    ]
)


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "component": record.name,
        }
        message = record.getMessage()
        if message:
            log_entry["message"] = message

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRIBUTES:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


class DeclarationLogger:
    """Structured logger for declaration events."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(f"dep_notation.{name}")
        self._setup_logger()
        self.project_context: Dict[str, Any] = {}

    def _setup_logger(self) -> None:
        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(StructuredFormatter())
            self.logger.addHandler(handler)
            self.logger.propagate = False
            self.logger.setLevel(logging.WARNING)

    def set_project_context(self, project: Optional[str] = None) -> None:
        self.project_context = {"project": project} if project else {}

    def clear_project_context(self) -> None:
        self.project_context.clear()

    def _log(self, level: int, event_type: str, **kwargs) -> None:
        if not self.logger.isEnabledFor(level):
            return
        self.logger.log(
            level, "", extra={"event_type": event_type, **self.project_context, **kwargs}
        )

    def debug(self, event_type: str, **kwargs) -> None:
        self._log(logging.DEBUG, event_type, **kwargs)


# Global logger instances
_declaration_logger = DeclarationLogger("declarations")
_resolution_logger = DeclarationLogger("resolution")


def log_dependency_declared(bucket: str, strategy: str, dependency: str) -> None:
    """Log a dependency appended to a bucket at declaration time."""
    _declaration_logger.debug(
        "dependency_declared", bucket=bucket, strategy=strategy, dependency=dependency
    )


def log_bundle_expanded(bucket: str, size: int) -> None:
    _declaration_logger.debug("bundle_expanded", bucket=bucket, bundle_size=size)


def log_deferred_registered(bucket: str, pending: int) -> None:
    _declaration_logger.debug("deferred_registered", bucket=bucket, pending=pending)


def log_deferred_realized(bucket: str, dependency: str) -> None:
    _resolution_logger.debug("deferred_realized", bucket=bucket, dependency=dependency)


def set_project_context(project: Optional[str] = None) -> None:
    """Attach the owning project name to every subsequent event."""
    for logger in [_declaration_logger, _resolution_logger]:
        logger.set_project_context(project)


def clear_project_context() -> None:
    for logger in [_declaration_logger, _resolution_logger]:
        logger.clear_project_context()


def configure_logging(log_level: str = "WARNING") -> None:
    """Configure logging levels for the declaration loggers."""
    level = getattr(logging, log_level.upper(), logging.WARNING)
    for logger in [_declaration_logger, _resolution_logger]:
        logger.logger.setLevel(level)
