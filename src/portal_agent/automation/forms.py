"""
Target Form Definitions

Describes the fields of the portal form the workflow fills: how each
payload key maps to an on-page label, what kind of widget it is and which
form section holds it. The portal backend uses this to pick a fill
strategy per field and to report the form's structure.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from .capability import SubmitType


class FieldKind(str, Enum):
    """Widget kinds found on the portal's PrimeNG forms."""

    DROPDOWN = "dropdown"
    DATETIME = "datetime"
    CHECKBOX = "checkbox"
    TEXTAREA = "textarea"
    EMAIL = "email"
    TEXT = "text"


@dataclass(frozen=True)
class FormField:
    """
    One form field.

    Attributes:
        name: Payload key (camelCase, e.g. ``homeVisitType``)
        label: Visible label on the page
        kind: Widget kind, selects the fill strategy
        section: Tab or panel holding the field, empty if always visible
        required: Whether the portal requires a value
        options: Known dropdown options, used when the page offers none
        placeholder: Input placeholder, for date fields
        match: Regex for the label when the visible text is long or varies
    """

    name: str
    label: str
    kind: FieldKind = FieldKind.TEXT
    section: str = ""
    required: bool = False
    options: tuple[str, ...] = ()
    placeholder: Optional[str] = None
    match: Optional[str] = None

    @property
    def pattern(self) -> re.Pattern:
        return re.compile(self.match or re.escape(self.label), re.I)

    def to_dict(self, options: Optional[list[str]] = None) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "label": self.label,
            "type": self.kind.value,
            "required": self.required,
        }
        if self.kind is FieldKind.DROPDOWN:
            data["options"] = list(options) if options else list(self.options)
        if self.placeholder:
            data["placeholder"] = self.placeholder
        return data


@dataclass(frozen=True)
class FormDefinition:
    """A named form: ordered sections, their fields and the action buttons."""

    name: str
    sections: tuple[str, ...]
    fields: tuple[FormField, ...]

    def field_for(self, key: str) -> FormField:
        """
        Resolve a payload key by field name or label, ignoring case.

        Unknown keys are treated as plain text fields labelled by the key.
        """
        wanted = key.strip().lower()
        for form_field in self.fields:
            if wanted in (form_field.name.lower(), form_field.label.lower()):
                return form_field
        return FormField(name=key, label=key)

    def section_rank(self, form_field: FormField) -> int:
        if form_field.section in self.sections:
            return self.sections.index(form_field.section)
        return 0

    @property
    def buttons(self) -> list[str]:
        return [submit_type.button_label for submit_type in SubmitType] + ["Back"]

    def describe(self, url: str, options: Optional[dict[str, list[str]]] = None) -> dict[str, Any]:
        """Form structure as plain data, with dropdown options read from the page where known."""
        options = options or {}
        return {
            "form_name": self.name,
            "url": url,
            "sections": [
                {
                    "name": section,
                    "fields": [
                        f.to_dict(options.get(f.name))
                        for f in self.fields if f.section == section
                    ],
                }
                for section in self.sections
            ],
            "buttons": self.buttons,
        }


SECTION_A = "Carer Section A"
SECTION_B = "Carer Section B"

HOME_VISIT_FORM = FormDefinition(
    name="Supervisory Home Visit",
    sections=(SECTION_A, SECTION_B),
    fields=(
        FormField(
            "category", "Category", FieldKind.DROPDOWN, SECTION_A, required=True,
            options=(
                "Individual Child", "Mother & Baby", "Multiple Unrelated Children",
                "No Child in Placement", "Respite", "Sibling Group", "Solo Placements",
                "Staying Put",
            ),
        ),
        FormField(
            "homeVisitType", "Home Visit Type", FieldKind.DROPDOWN, SECTION_A,
            options=("Announced", "Cancelled", "Rescheduled"),
        ),
        FormField(
            "dateOfVisit", "Date Of Visit", FieldKind.DATETIME, SECTION_A, required=True,
            placeholder="dd/mm/yyyy hh:mm",
        ),
        FormField("homeFileSeen", "Home File Seen", FieldKind.CHECKBOX, SECTION_A),
        FormField("medicationSheetChecked", "Medication Sheet Checked", FieldKind.CHECKBOX, SECTION_A),
        FormField(
            "localAuthorityFeedbackRequested", "Local Authority Feedback Requested",
            FieldKind.CHECKBOX, SECTION_A,
        ),
        FormField("natureOfVisit", "Nature of Visit", FieldKind.TEXTAREA, SECTION_A),
        FormField(
            "attendeesDetails",
            "Names of all those present at the meeting. Details of any new placements "
            "since the last visit. Note if children were seen alone. If not seen at all, "
            "reason why?",
            FieldKind.TEXTAREA, SECTION_A, match="Names of all those present",
        ),
        FormField(
            "additionalEmails", "Additional Email Addresses to be notified",
            FieldKind.EMAIL, SECTION_A,
        ),
        FormField("caringForChildren", "Caring for Children", FieldKind.TEXTAREA, SECTION_B),
        FormField("workingAsPartOfTeam", "Working as part of a team", FieldKind.TEXTAREA, SECTION_B),
        FormField(
            "trainingPersonalDevelopment", "Training & Personal Development",
            FieldKind.TEXTAREA, SECTION_B,
        ),
        FormField("carerPersonalIssues", "Carer Personal Issues", FieldKind.TEXTAREA, SECTION_B),
        FormField("agencyIssues", "Agency Issues", FieldKind.TEXTAREA, SECTION_B),
        FormField(
            "safeEnvironment", "Providing a Safe Environment / Safe Care Issues",
            FieldKind.TEXTAREA, SECTION_B, match="Safe Environment|Safe Care",
        ),
        FormField(
            "concernsAllegations", "Concerns / Allegations / Commendations",
            FieldKind.TEXTAREA, SECTION_B, match="Concerns|Allegations|Commendations",
        ),
        FormField(
            "dayCareRespite", "Day Care / Household Respite Carer and Respite Training",
            FieldKind.TEXTAREA, SECTION_B, match="Day Care|Respite",
        ),
        FormField(
            "supervisionSentToCarer", "Has the Supervision sent to Carer?",
            FieldKind.CHECKBOX, SECTION_B, match="Supervision sent to Carer",
        ),
        FormField(
            "fosterCarerComments", "Foster Carer Comments on Supervision",
            FieldKind.TEXTAREA, SECTION_B, match="Foster Carer Comments",
        ),
        FormField(
            "lineManagerComments", "Line Manager's Comments on Supervision",
            FieldKind.TEXTAREA, SECTION_B, match="Line Manager",
        ),
    ),
)
