"""
Tests for the Family Living Calculator models

Test strategy:
1. Unit tests for models, calculator and store
2. Flow tests for the login handshake with faked host and HTTP transport
3. No real network calls in tests
"""

import json

import pytest

from family_budget.models import (
    AccordionState,
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    AuthState,
    AuthStatus,
    ChildEntry,
    ChildType,
    FormFieldError,
    FormState,
    MAX_CHILDREN,
    Section,
    YesNo,
)


class TestChildEntry:
    """Tests for ChildEntry."""

    def test_defaults(self):
        """A new child is an infant with every cost empty."""
        child = ChildEntry()
        assert child.type == ChildType.INFANT
        assert child.is_infant is True
        assert child.doctor == ""
        assert child.daily == ""

    def test_numbers_are_accepted_as_text(self):
        """Stored JSON may carry numbers; they become text."""
        child = ChildEntry(doctor=10000, milk=2.5, diapers=None)
        assert child.doctor == "10000"
        assert child.milk == "2.5"
        assert child.diapers == ""

    def test_with_field_returns_copy(self):
        child = ChildEntry()
        updated = child.with_field("milk", "5000")
        assert updated.milk == "5000"
        assert child.milk == ""

    def test_with_field_rejects_unknown_key(self):
        with pytest.raises(FormFieldError, match="Unknown child field"):
            ChildEntry().with_field("pony", "1")

    def test_with_field_rejects_invalid_type(self):
        with pytest.raises(FormFieldError):
            ChildEntry().with_field("type", "teenager")

    def test_from_partial_drops_invalid_fields(self):
        child = ChildEntry.from_partial({"type": "teenager", "school": "5000"})
        assert child.type == ChildType.INFANT
        assert child.school == "5000"

    def test_from_partial_non_mapping(self):
        assert ChildEntry.from_partial("garbage") == ChildEntry()


class TestFormState:
    """Tests for FormState updates and reconciliation."""

    def test_defaults(self):
        state = FormState()
        assert state.salary == ""
        assert state.wives == "0"
        assert state.children_count == "0"
        assert state.children == ()
        assert state.car == YesNo.NO
        assert state.taxi == YesNo.NO

    def test_frozen(self):
        state = FormState()
        with pytest.raises(ValueError):
            state.salary = "100"

    def test_with_field_by_attribute_and_stored_key(self):
        state = FormState()
        assert state.with_field("taxi_income", "5").taxi_income == "5"
        assert state.with_field("taxiIncome", "7").taxi_income == "7"

    def test_with_field_leaves_original_untouched(self):
        state = FormState()
        updated = state.with_field("salary", "1000000")
        assert updated.salary == "1000000"
        assert state.salary == ""

    def test_with_field_rejects_children(self):
        with pytest.raises(FormFieldError):
            FormState().with_field("children", [])

    def test_with_field_rejects_unknown(self):
        with pytest.raises(FormFieldError, match="Unknown form field"):
            FormState().with_field("cats", "2")

    def test_with_field_rejects_invalid_enum(self):
        with pytest.raises(FormFieldError):
            FormState().with_field("car", "maybe")

    def test_children_count_grows_with_defaults(self):
        """0 -> 3 yields exactly three default entries."""
        state = FormState().with_field("childrenCount", "3")
        assert len(state.children) == 3
        assert all(c == ChildEntry() for c in state.children)

    def test_children_count_shrink_keeps_leading_entries(self):
        """3 -> 1 keeps index 0's data and drops the rest."""
        state = FormState().with_field("childrenCount", "3")
        state = state.with_child_field(0, "doctor", "10000")
        state = state.with_child_field(2, "milk", "9")
        shrunk = state.with_field("childrenCount", "1")
        assert len(shrunk.children) == 1
        assert shrunk.children[0].doctor == "10000"

    def test_regrow_after_shrink_starts_fresh(self):
        state = FormState().with_field("childrenCount", "2")
        state = state.with_child_field(1, "milk", "9")
        state = state.with_field("childrenCount", "1").with_field("childrenCount", "2")
        assert state.children[1] == ChildEntry()

    @pytest.mark.parametrize("count, expected", [
        ("", 0), ("abc", 0), ("-2", 0), ("2.7", 2), (" 4 ", 4),
    ])
    def test_children_count_coercion(self, count, expected):
        state = FormState().with_field("childrenCount", count)
        assert len(state.children) == expected

    @pytest.mark.parametrize("count", ["21", "3e5", "1e9", "1e999999"])
    def test_children_count_is_capped(self, count):
        """A huge count never builds more than MAX_CHILDREN entries."""
        state = FormState().with_field("childrenCount", count)
        assert len(state.children) == MAX_CHILDREN
        assert state.expected_children == MAX_CHILDREN

    def test_capped_children_keep_their_data(self):
        state = FormState().with_field("childrenCount", "2")
        state = state.with_child_field(1, "milk", "9")
        state = state.with_field("childrenCount", "1e12")
        assert len(state.children) == MAX_CHILDREN
        assert state.children[1].milk == "9"

    def test_child_update_does_not_alias_previous_state(self):
        state = FormState().with_field("childrenCount", "2")
        before = state.children
        updated = state.with_child_field(1, "type", "student")
        assert updated.children[1].type == ChildType.STUDENT
        assert before[1].type == ChildType.INFANT
        assert state.children is before
        assert updated.children is not before

    def test_with_child_field_bad_index(self):
        with pytest.raises(FormFieldError, match="No child at index"):
            FormState().with_child_field(0, "milk", "1")

    def test_storage_json_uses_camel_case(self):
        state = FormState().with_field("childrenCount", "1")
        data = json.loads(state.to_storage_json())
        assert data["childrenCount"] == "1"
        assert "taxiIncome" in data
        assert data["children"][0]["type"] == "infant"
        assert data["car"] == "no"

    def test_from_partial_merges_over_defaults(self):
        state = FormState.from_partial({"salary": "500", "unknown": 1})
        assert state.salary == "500"
        assert state.food == ""
        assert state.wives == "0"

    def test_from_partial_invalid_field_takes_default(self):
        state = FormState.from_partial({"car": "maybe", "food": "100"})
        assert state.car == YesNo.NO
        assert state.food == "100"

    def test_from_partial_invalid_camel_case_field_takes_default(self):
        state = FormState.from_partial({"taxiIncome": ["x"], "salary": "1"})
        assert state.taxi_income == ""
        assert state.salary == "1"

    def test_from_partial_reconciles_children(self):
        state = FormState.from_partial({
            "childrenCount": "3",
            "children": [{"type": "student", "school": "50000"}],
        })
        assert len(state.children) == 3
        assert state.children[0].type == ChildType.STUDENT
        assert state.children[0].school == "50000"

    def test_from_partial_caps_stored_count(self):
        state = FormState.from_partial({"childrenCount": "1e12"})
        assert len(state.children) == MAX_CHILDREN

    def test_from_partial_caps_stored_children_list(self):
        stored = [{"milk": str(i)} for i in range(1000)]
        state = FormState.from_partial({"childrenCount": "1000", "children": stored})
        assert len(state.children) == MAX_CHILDREN
        assert state.children[-1].milk == str(MAX_CHILDREN - 1)

    def test_from_partial_non_mapping(self):
        assert FormState.from_partial([1, 2, 3]) == FormState()


class TestAccordionState:

    def test_all_expanded_by_default(self):
        accordion = AccordionState()
        assert all(accordion.is_expanded(s) for s in Section)

    def test_toggle_only_touches_one_section(self):
        accordion = AccordionState().toggle(Section.CHILDREN)
        assert accordion.is_expanded(Section.CHILDREN) is False
        assert accordion.is_expanded(Section.FAMILY) is True
        assert accordion.toggle("children").is_expanded(Section.CHILDREN) is True


class TestAuthState:

    def test_defaults(self):
        auth = AuthState()
        assert auth.status == AuthStatus.IDLE
        assert auth.user is None
        assert auth.loading is False
        assert auth.error is None
        assert auth.is_authenticated is False

    def test_display_name_fallbacks(self):
        assert AuthState(user={"name": "Ali"}).display_name == "Ali"
        assert AuthState(user={"displayName": "Zainab"}).display_name == "Zainab"
        assert AuthState(user={"id": 1}).display_name == "مستخدم"

    def test_transition(self):
        auth = AuthState().transition(AuthStatus.AUTH_FAILED, error="boom")
        assert auth.status == AuthStatus.AUTH_FAILED
        assert auth.error == "boom"


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_to_log_dict(self):
        event = AuditEvent(
            event_type=AuditEventType.FORM_SAVED,
            description="Form written to storage",
            details={"storage_key": "family-living-calculator"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "form_saved"
        assert log_dict["details"]["storage_key"] == "family-living-calculator"

    def test_builder_auth_failed_is_error(self):
        event = AuditEventBuilder.auth_failed("Auth failed: 401 invalid")
        assert event.event_type == AuditEventType.AUTH_FAILED
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "Auth failed: 401 invalid"

    def test_builder_token_missing_is_warning(self):
        event = AuditEventBuilder.auth_token_missing()
        assert event.severity == AuditSeverity.WARNING


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
