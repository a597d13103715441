"""
Audit Logger

Every significant action (form saved, host detected, login attempted) is
written to the structured log as an AuditEvent.

The audit logger:
- Is synchronous; Streamlit reruns the script on every event anyway
- Never raises into the caller if logging itself fails
- Supports correlation IDs to trace the steps of one login attempt
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from family_budget.models.audit import AuditEvent, AuditEventBuilder, AuditEventType, AuditSeverity

_configured = False


def configure_logging(level: str = "INFO") -> None:
    """
    Configure structlog for local JSON logging.

    Safe to call more than once; Streamlit re-executes the app module on
    every interaction, so only the first call does anything.
    """
    global _configured
    if _configured:
        return

    logging.basicConfig(format="%(message)s", level=getattr(logging, level, logging.INFO))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(ensure_ascii=False)
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: Optional[str] = None):
    """Structured logger bound to a module name."""
    return structlog.get_logger(name)


class AuditLogger:
    """Central audit logging service. Logs to the local structured log only."""

    def __init__(self, logger=None):
        self._logger = logger or get_logger("family_budget.audit")

    def log(self, event: AuditEvent) -> None:
        """Log an audit event at the level matching its severity."""
        log_dict = event.to_log_dict()
        try:
            if event.severity == AuditSeverity.ERROR:
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            # a broken log handler must not take the UI down with it
            logging.getLogger(__name__).exception("audit logging failed")

    def log_form_loaded(self, storage_key: str, found: bool, children: int) -> None:
        self.log(AuditEventBuilder.form_loaded(storage_key, found, children))

    def log_form_load_failed(self, storage_key: str, error_message: str) -> None:
        self.log(AuditEventBuilder.form_load_failed(storage_key, error_message))

    def log_form_saved(self, storage_key: str, size_bytes: int) -> None:
        self.log(AuditEventBuilder.form_saved(storage_key, size_bytes))

    def log_form_save_failed(self, storage_key: str, error_message: str) -> None:
        self.log(AuditEventBuilder.form_save_failed(storage_key, error_message))

    def log_form_reset(self, storage_key: str) -> None:
        self.log(AuditEventBuilder.form_reset(storage_key))

    def log_host_detected(self) -> None:
        self.log(AuditEventBuilder.host_event(
            AuditEventType.HOST_DETECTED, "Running inside Super Qi"
        ))

    def log_host_ready(self) -> None:
        self.log(AuditEventBuilder.host_event(
            AuditEventType.HOST_READY_SIGNALLED, "Signalled ready to host"
        ))

    def log_host_close(self) -> None:
        self.log(AuditEventBuilder.host_event(
            AuditEventType.HOST_CLOSE_REQUESTED, "Asked host to close mini-app"
        ))

    def log_bridge_call_failed(self, method: str, error_message: str) -> None:
        self.log(AuditEventBuilder.bridge_call_failed(method, error_message))

    def log_auth_token_missing(self) -> None:
        self.log(AuditEventBuilder.auth_token_missing())

    def log_auth_started(self, source: str, correlation_id: UUID) -> None:
        self.log(AuditEventBuilder.auth_started(source, correlation_id))

    def log_auth_succeeded(self, user: dict, correlation_id: UUID) -> None:
        self.log(AuditEventBuilder.auth_succeeded(sorted(user), correlation_id))

    def log_auth_failed(self, error_message: str, correlation_id: Optional[UUID] = None) -> None:
        self.log(AuditEventBuilder.auth_failed(error_message, correlation_id))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use one per login attempt and pass it through every step.
    """
    return uuid4()
