"""
Form Models for the Family Living Calculator

FormState is the single source of truth for everything the user typed.
It is frozen: every edit produces a new FormState, and the children tuple
of an old state is never touched, so anything still holding the previous
value (the totals calculator, a renderer) keeps seeing consistent data.

DESIGN DECISION: Amounts are kept as the raw text the user typed.
Nothing is validated at input time; the calculator coerces text to
numbers and treats anything unparseable as zero.

Stored JSON uses the original camelCase keys (childrenCount, taxiIncome)
so previously saved forms keep loading.
"""

from enum import Enum
from typing import Annotated, Any, Mapping

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    ValidationError,
)
from pydantic.alias_generators import to_camel

from family_budget.calculator.coercion import to_count

MAX_CHILDREN = 20


def _as_text(value: Any) -> Any:
    """Accept numbers from stored JSON as text; None means empty."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return value


NumericText = Annotated[str, BeforeValidator(_as_text)]


# =============================================================================
# ENUMS
# =============================================================================

class YesNo(str, Enum):
    """Answer to the car / taxi questions."""
    YES = "yes"
    NO = "no"


class ChildType(str, Enum):
    """
    Which expense fields apply to a child.

    Infants (< 2 years) cost doctor + milk + diapers.
    Students cost school + transport + stationery + daily allowance.
    """
    INFANT = "infant"
    STUDENT = "student"


class FormFieldError(ValueError):
    """Raised when an update names an unknown field or carries an invalid value."""
    pass


# =============================================================================
# CHILD ENTRY
# =============================================================================

class ChildEntry(BaseModel):
    """One child. Age is informational only."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    age: NumericText = ""
    type: ChildType = ChildType.INFANT

    # Infant fields (monthly)
    doctor: NumericText = ""
    milk: NumericText = ""
    diapers: NumericText = ""

    # Student fields (monthly, except daily)
    school: NumericText = ""
    transport: NumericText = ""
    daily: NumericText = Field(
        default="",
        description="Daily pocket money, scaled x30 to a monthly amount"
    )
    stationery: NumericText = ""

    @property
    def is_infant(self) -> bool:
        return self.type == ChildType.INFANT

    def with_field(self, key: str, value: Any) -> "ChildEntry":
        """Return a copy with one field changed."""
        if key not in type(self).model_fields:
            raise FormFieldError(f"Unknown child field: {key}")
        data = self.model_dump()
        data[key] = value
        try:
            return ChildEntry.model_validate(data)
        except ValidationError as e:
            raise FormFieldError(f"Invalid value for child field {key!r}: {value!r}") from e

    @classmethod
    def from_partial(cls, data: Any) -> "ChildEntry":
        """Build an entry from stored data, dropping fields that don't validate."""
        if not isinstance(data, Mapping):
            return cls()
        return cls.model_validate(_valid_subset(cls, dict(data), cls().model_dump()))


# =============================================================================
# FORM STATE
# =============================================================================

class FormState(BaseModel):
    """
    Everything the user entered.

    Invariant: len(children) == to_count(children_count, MAX_CHILDREN).
    Use with_field / with_child_field / reconciled to get updated copies.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    salary: NumericText = Field(
        default="",
        description="Monthly salary in IQD"
    )
    wives: NumericText = Field(
        default="0",
        description="Number of wives (informational, not used in totals)"
    )
    children_count: NumericText = Field(
        default="0",
        description="Number of children; drives the length of children"
    )
    children: tuple[ChildEntry, ...] = ()

    # General monthly expenses
    food: NumericText = ""
    services: NumericText = Field(
        default="",
        description="Electricity, water, generator, internet"
    )

    # Transport
    car: YesNo = YesNo.NO
    taxi: YesNo = Field(
        default=YesNo.NO,
        description="Only meaningful when car is yes"
    )
    taxi_income: NumericText = Field(
        default="",
        description="Counted only when car and taxi are both yes"
    )

    @property
    def expected_children(self) -> int:
        return to_count(self.children_count, maximum=MAX_CHILDREN)

    def reconciled(self) -> "FormState":
        """
        Resize children to match children_count.

        Growing appends default entries, shrinking truncates from the end.
        Returns self when the length already matches.
        """
        count = self.expected_children
        current = len(self.children)
        if current == count:
            return self
        if current < count:
            children = self.children + tuple(ChildEntry() for _ in range(count - current))
        else:
            children = self.children[:count]
        return self.model_copy(update={"children": children})

    def with_field(self, key: str, value: Any) -> "FormState":
        """
        Return a new state with exactly one top-level field changed.

        Accepts the stored key (childrenCount) or the attribute name
        (children_count). Children are edited through with_child_field.
        """
        name = _resolve_field_name(key)
        if name == "children":
            raise FormFieldError("children cannot be set directly; use with_child_field")
        data = self.model_dump()
        data[name] = value
        try:
            updated = FormState.model_validate(data)
        except ValidationError as e:
            raise FormFieldError(f"Invalid value for field {key!r}: {value!r}") from e
        return updated.reconciled()

    def with_child_field(self, index: int, key: str, value: Any) -> "FormState":
        """Return a new state with one field of one child changed."""
        if not 0 <= index < len(self.children):
            raise FormFieldError(f"No child at index {index}")
        children = list(self.children)
        children[index] = children[index].with_field(key, value)
        return self.model_copy(update={"children": tuple(children)})

    def to_storage_dict(self) -> dict:
        """Serializable dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)

    def to_storage_json(self) -> str:
        """Whole-object JSON for the storage slot."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_partial(cls, data: Any) -> "FormState":
        """
        Merge stored data over the defaults, field by field.

        Fields that fail validation keep their default value; invalid
        child entries are replaced with default entries. Anything that
        isn't a mapping yields the defaults. The result is reconciled.
        """
        if not isinstance(data, Mapping):
            return cls()

        raw = {}
        for key, value in data.items():
            try:
                raw[_resolve_field_name(key)] = value
            except FormFieldError:
                continue

        children = raw.pop("children", ())
        if isinstance(children, (list, tuple)):
            raw["children"] = tuple(
                ChildEntry.from_partial(c) for c in children[:MAX_CHILDREN]
            )

        defaults = cls().model_dump()
        return cls.model_validate(_valid_subset(cls, raw, defaults)).reconciled()


def _resolve_field_name(key: str) -> str:
    """Map a stored key or attribute name to the FormState attribute name."""
    fields = FormState.model_fields
    if key in fields:
        return key
    for name in fields:
        if to_camel(name) == key:
            return name
    raise FormFieldError(f"Unknown form field: {key}")


def _valid_subset(model: type[BaseModel], data: dict, defaults: dict) -> dict:
    """
    Overlay data on defaults, keeping only the fields that validate.

    Validation errors point at the offending field, so those fields are
    dropped one round at a time until the remainder validates.
    """
    merged = {**defaults, **{k: v for k, v in data.items() if k in model.model_fields}}
    # every round drops at least one field, so this terminates
    for _ in range(len(merged) + 1):
        try:
            model.model_validate(merged)
            return merged
        except ValidationError as e:
            bad = {_field_for_loc(model, err["loc"][0]) for err in e.errors() if err["loc"]}
            if not bad:
                return defaults
            for name in bad:
                merged[name] = defaults[name]
    return defaults


def _field_for_loc(model: type[BaseModel], loc) -> str:
    """Error locations may be reported by alias; map them back to field names."""
    if loc in model.model_fields:
        return loc
    for name in model.model_fields:
        if to_camel(name) == loc:
            return name
    return loc
