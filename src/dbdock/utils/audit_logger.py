"""Structured audit logging for database lifecycle operations."""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from dbdock.utils.logging import get_logger

REDACTED = "***REDACTED***"

SENSITIVE_WORDS = (
    "password",
    "token",
    "secret",
    "key",
    "auth",
    "credentials",
    "private",
)


class AuditEventType(str, Enum):
    """Types of audit events."""

    # Database events
    DATABASE_CREATE = "database_create"
    DATABASE_UPDATE = "database_update"
    DATABASE_START = "database_start"
    DATABASE_STOP = "database_stop"
    DATABASE_REMOVE = "database_remove"
    DATABASE_OPERATION_FAILED = "database_operation_failed"

    # System events
    SYSTEM_STARTUP = "system_startup"
    SYSTEM_SHUTDOWN = "system_shutdown"
    SYSTEM_SYNC = "system_sync"
    RUNTIME_AVAILABILITY = "runtime_availability"


class AuditLogger:
    """Writes one structured record per lifecycle event, with secrets redacted."""

    def __init__(self):
        self._logger = get_logger("dbdock.audit")
        # Audit records must survive a WARNING root level
        self._logger.setLevel(logging.INFO)

    def log_event(
        self,
        event_type: AuditEventType,
        container_id: Optional[str] = None,
        db_type: Optional[str] = None,
        name: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Log an audit event.

        Args:
            event_type: Type of event being logged
            container_id: Database id if relevant
            db_type: Provider id if relevant
            name: Database name if relevant
            details: Additional event-specific details
        """
        event: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": event_type.value,
        }

        if container_id:
            event["container_id"] = container_id
        if db_type:
            event["db_type"] = db_type
        if name:
            event["db_name"] = name

        sanitized = self.sanitize(details or {})
        if sanitized:
            event["details"] = sanitized

        self._logger.info("audit_event", extra=event)

    def sanitize(self, details: dict[str, Any]) -> dict[str, Any]:
        """
        Redact values whose key looks like a credential.

        Nested dictionaries and lists of dictionaries are walked as well, so a
        whole configuration object can be passed in.

        Args:
            details: Raw event details

        Returns:
            Copy of details with sensitive fields redacted
        """
        sanitized: dict[str, Any] = {}
        for key, value in details.items():
            if any(word in key.lower() for word in SENSITIVE_WORDS):
                sanitized[key] = REDACTED
            elif isinstance(value, dict):
                sanitized[key] = self.sanitize(value)
            elif isinstance(value, list):
                sanitized[key] = [
                    self.sanitize(item) if isinstance(item, dict) else item for item in value
                ]
            else:
                sanitized[key] = value
        return sanitized


# Global audit logger instance
_audit_logger: Optional[AuditLogger] = None


def get_audit_logger() -> AuditLogger:
    """
    Get the global audit logger instance.

    Returns:
        AuditLogger instance
    """
    global _audit_logger
    if _audit_logger is None:
        _audit_logger = AuditLogger()
    return _audit_logger
