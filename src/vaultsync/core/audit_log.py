# Core: Audit Logging
#
# Append-only structured log of session and record events.
# Each event is a JSON line written through structlog into a daily file.
#
# Never pass key material, master passwords or plaintext passwords into
# details: events carry ids, titles, counts and reasons only.

import logging
import sys
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional
from uuid import uuid4

import structlog


class EventType(str, Enum):
    """Types of events recorded by the client."""

    # Session lifecycle
    SESSION_REGISTERED = "session.registered"
    SESSION_LOGIN = "session.login"
    SESSION_LOGIN_FAILED = "session.login.failed"
    SESSION_UNLOCKED = "session.unlocked"
    SESSION_LOCKED = "session.locked"
    SESSION_LOGOUT = "session.logout"

    # Entries
    ENTRY_CREATED = "entry.created"
    ENTRY_UPDATED = "entry.updated"
    ENTRY_DELETED = "entry.deleted"
    ENTRY_LISTED = "entry.listed"
    ENTRY_DECRYPT_FAILED = "entry.decrypt.failed"

    # Account
    ACCOUNT_DELETED = "account.deleted"

    # System
    SYSTEM_ERROR = "system.error"


class EventSeverity(str, Enum):
    """
    Severity levels for audit events.

    - INFO: normal activity
    - WARNING: something degraded (e.g. one record failed to decrypt)
    - ALERT: security-relevant failure (bad credentials, tamper suspicion)
    """
    INFO = "info"
    WARNING = "warning"
    ALERT = "alert"


class AuditLogger:
    """
    Append-only audit logger.

    Features:
    - Structured JSON logging (structlog)
    - Automatic timestamp and event ID
    - Daily log files under ``log_dir``
    """

    def __init__(self, log_dir: Optional[Path] = None):
        """
        Initialize audit logger.

        Args:
            log_dir: Directory for audit logs (default: ./audit_logs)
        """
        self.log_dir = Path(log_dir) if log_dir else Path("./audit_logs")
        self.log_dir.mkdir(parents=True, exist_ok=True)

        structlog.configure(
            processors=[
                structlog.stdlib.add_log_level,
                structlog.stdlib.add_logger_name,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer()
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )

        self.log_file = self._setup_file_handler()
        self.logger = structlog.get_logger("vaultsync.audit")

    def _setup_file_handler(self) -> Path:
        """Attach a file handler for today's log to the audit logger."""
        today = datetime.now().strftime("%Y-%m-%d")
        log_file = self.log_dir / f"audit_{today}.log"

        audit_logger = logging.getLogger("vaultsync.audit")

        # One active audit file per process
        for handler in list(audit_logger.handlers):
            if isinstance(handler, logging.FileHandler):
                audit_logger.removeHandler(handler)
                handler.close()

        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(logging.Formatter('%(message)s'))  # structlog handles formatting
        audit_logger.addHandler(file_handler)
        audit_logger.setLevel(logging.INFO)
        return log_file

    def log_event(
        self,
        event_type: EventType,
        severity: EventSeverity,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        user_context: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Log an event (append-only).

        Args:
            event_type: Type of event (from EventType enum)
            severity: Severity level (from EventSeverity enum)
            message: Human-readable event description
            details: Additional event details (no secrets)
            user_context: User context (user_id, email)

        Returns:
            str: Event ID (UUID) for reference
        """
        event_id = str(uuid4())

        event_data = {
            "event_id": event_id,
            "event_type": event_type.value,
            "severity": severity.value,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "details": details or {},
            "user_context": user_context or self._get_default_user_context(),
        }

        self.logger.info("vault_event", **event_data)

        return event_id

    def _get_default_user_context(self) -> Dict[str, Any]:
        """Get default user context (OS user, hostname, etc.)."""
        import socket
        import os

        return {
            "os_user": os.getenv("USERNAME") or os.getenv("USER"),
            "hostname": socket.gethostname(),
            "platform": sys.platform,
        }


# Global logger instance
_audit_logger: Optional[AuditLogger] = None


def get_audit_logger() -> AuditLogger:
    """Get global audit logger (singleton pattern)."""
    global _audit_logger
    if _audit_logger is None:
        from .config import get_settings
        _audit_logger = AuditLogger(log_dir=get_settings().log_dir)
    return _audit_logger

