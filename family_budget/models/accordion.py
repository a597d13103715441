"""Collapsible section state. Presentational only, never persisted."""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class Section(str, Enum):
    """The five collapsible panels, in display order."""
    FAMILY = "family"
    CHILDREN = "children"
    TRANSPORT = "transport"
    GENERAL = "general"
    SUMMARY = "summary"


class AccordionState(BaseModel):
    """Expanded (True) / collapsed (False) per section. All start expanded."""

    model_config = ConfigDict(frozen=True)

    family: bool = True
    children: bool = True
    transport: bool = True
    general: bool = True
    summary: bool = True

    def is_expanded(self, section: Section) -> bool:
        return getattr(self, Section(section).value)

    def toggle(self, section: Section) -> "AccordionState":
        key = Section(section).value
        return self.model_copy(update={key: not getattr(self, key)})
