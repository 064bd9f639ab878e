"""
Structured logging setup for secure-route.
"""

import logging
import json
import sys
from datetime import datetime, timezone
from typing import Any, Optional

_RESERVED = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'lineno', 'funcName', 'created',
    'msecs', 'relativeCreated', 'thread', 'threadName', 'taskName',
    'processName', 'process', 'getMessage', 'exc_info',
    'exc_text', 'stack_info'
}


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        # Fields passed through ``extra=``
        for key, value in record.__dict__.items():
            if key not in _RESERVED:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


def setup_logging(
    level: str = "INFO",
    format_type: str = "json",
    log_file: Optional[str] = None
) -> None:
    """
    Setup logging for the ``secure_route`` logger hierarchy.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        format_type: Format type (json, text)
        log_file: Optional log file path
    """
    package_logger = logging.getLogger("secure_route")
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)

    package_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if format_type == "json":
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    package_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the specified name."""
    return logging.getLogger(name)


class AuditLogger:
    """Security audit logging for session transitions."""

    def __init__(self, logger_name: str = "secure_route.audit"):
        self.logger = get_logger(logger_name)

    def log_login_attempt(
        self,
        username: str,
        success: bool,
        client_ip: Optional[str] = None,
        method: str = "login",
        reason: Optional[str] = None
    ):
        """Log login attempts, including Basic-Auth pre-authentication."""
        level = logging.INFO if success else logging.WARNING
        message = f"Login {'successful' if success else 'failed'} for user {username}"

        self.logger.log(
            level,
            message,
            extra={
                "username": username,
                "success": success,
                "client_ip": client_ip,
                "method": method,
                "reason": reason,
                "event": "login_attempt"
            }
        )

    def log_authorize(self, user: Any, client_ip: Optional[str] = None):
        """Log a session becoming authorized."""
        self.logger.info(
            "Session authorized",
            extra={
                "user": _describe(user),
                "client_ip": client_ip,
                "event": "authorize"
            }
        )

    def log_logout(self, user: Any, client_ip: Optional[str] = None):
        """Log a sign-out."""
        self.logger.info(
            "Session signed out",
            extra={
                "user": _describe(user),
                "client_ip": client_ip,
                "event": "logout"
            }
        )

    def log_lockdown_denied(self, path: str, client_ip: Optional[str] = None, handler: Optional[str] = None):
        """Log a request stopped by lockdown."""
        self.logger.warning(
            f"Unauthorized request to {path}",
            extra={
                "path": path,
                "client_ip": client_ip,
                "handler": handler or "default",
                "event": "lockdown_denied"
            }
        )


def _describe(user: Any) -> Optional[str]:
    if user is None:
        return None
    for attribute in ("username", "name", "id", "sub"):
        if isinstance(user, dict) and attribute in user:
            return str(user[attribute])
        if hasattr(user, attribute):
            return str(getattr(user, attribute))
    return type(user).__name__
