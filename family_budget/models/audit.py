"""
Audit Models for the Family Living Calculator

Significant actions (form persistence, host bridge calls, the login
handshake) are described by an AuditEvent and written to the structured
log. Nothing here is persisted; the events exist for debugging in the
host webview and in server logs.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we log."""
    # Form persistence
    FORM_LOADED = "form_loaded"
    FORM_LOAD_FAILED = "form_load_failed"
    FORM_SAVED = "form_saved"
    FORM_SAVE_FAILED = "form_save_failed"
    FORM_RESET = "form_reset"

    # Host bridge
    HOST_DETECTED = "host_detected"
    HOST_READY_SIGNALLED = "host_ready_signalled"
    HOST_CLOSE_REQUESTED = "host_close_requested"
    BRIDGE_CALL_FAILED = "bridge_call_failed"

    # Login handshake
    AUTH_TOKEN_MISSING = "auth_token_missing"
    AUTH_STARTED = "auth_started"
    AUTH_SUCCEEDED = "auth_succeeded"
    AUTH_FAILED = "auth_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """A single logged event."""

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Correlation - all events of one login attempt share an id
    correlation_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.form_saved(storage_key, children=2)
        event = AuditEventBuilder.auth_failed(message, correlation_id)
    """

    @staticmethod
    def form_loaded(storage_key: str, found: bool, children: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FORM_LOADED,
            description="Form restored from storage" if found else "No stored form, using defaults",
            details={
                "storage_key": storage_key,
                "found": found,
                "children": children,
            },
        )

    @staticmethod
    def form_load_failed(storage_key: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FORM_LOAD_FAILED,
            severity=AuditSeverity.WARNING,
            description="Stored form unreadable, falling back to defaults",
            details={"storage_key": storage_key},
            error_message=error_message,
        )

    @staticmethod
    def form_saved(storage_key: str, size_bytes: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FORM_SAVED,
            severity=AuditSeverity.DEBUG,
            description="Form written to storage",
            details={
                "storage_key": storage_key,
                "size_bytes": size_bytes,
            },
            is_user_action=True,
        )

    @staticmethod
    def form_save_failed(storage_key: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FORM_SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            description="Could not write form to storage",
            details={"storage_key": storage_key},
            error_message=error_message,
        )

    @staticmethod
    def form_reset(storage_key: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FORM_RESET,
            description="Stored form cleared",
            details={"storage_key": storage_key},
            is_user_action=True,
        )

    @staticmethod
    def host_event(event_type: AuditEventType, description: str) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            description=description,
        )

    @staticmethod
    def bridge_call_failed(method: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BRIDGE_CALL_FAILED,
            severity=AuditSeverity.WARNING,
            description=f"Host bridge call failed: {method}",
            details={"method": method},
            error_message=error_message,
        )

    @staticmethod
    def auth_token_missing() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AUTH_TOKEN_MISSING,
            severity=AuditSeverity.WARNING,
            description="Super Qi bridge present but no auth token available",
        )

    @staticmethod
    def auth_started(source: str, correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AUTH_STARTED,
            correlation_id=correlation_id,
            description=f"Token exchange started ({source})",
            details={"source": source},
            is_user_action=source == "auth_code",
        )

    @staticmethod
    def auth_succeeded(user_keys: list[str], correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AUTH_SUCCEEDED,
            correlation_id=correlation_id,
            description="Super Qi user authenticated",
            details={"user_fields": user_keys},
        )

    @staticmethod
    def auth_failed(error_message: str, correlation_id: Optional[UUID] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AUTH_FAILED,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description="Super Qi auth failed",
            error_message=error_message,
        )
