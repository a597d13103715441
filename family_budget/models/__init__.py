"""
Data Models Package

This package contains all Pydantic models used by the Family Living Calculator.
"""

from family_budget.models.form import (
    ChildEntry,
    ChildType,
    FormFieldError,
    MAX_CHILDREN,
    FormState,
    YesNo,
)
from family_budget.models.totals import Totals
from family_budget.models.accordion import AccordionState, Section
from family_budget.models.auth import AuthState, AuthStatus
from family_budget.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Form models
    "MAX_CHILDREN",
    "ChildEntry",
    "ChildType",
    "FormFieldError",
    "FormState",
    "YesNo",
    "Totals",
    # UI / session models
    "AccordionState",
    "Section",
    "AuthState",
    "AuthStatus",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
