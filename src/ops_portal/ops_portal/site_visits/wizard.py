"""State of the four-step "start site visit" form.

1 Purpose & Location, 2 Customer Details, 3 Department Details, 4 Photo & Confirm.
The server replays the same checks on submit, so a client that skips steps
gets the same answer the form would have given.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from ..common.location import Location
from ..common.validators import validate_address, validate_customer_name, validate_mobile
from ..core.enums import Department, VisitPurpose
from ..core.exceptions import ValidationError

STEP_PURPOSE = 1
STEP_CUSTOMER = 2
STEP_DEPARTMENT = 3
STEP_CONFIRM = 4

STEP_TITLES = {
    STEP_PURPOSE: "Purpose & Location",
    STEP_CUSTOMER: "Customer Details",
    STEP_DEPARTMENT: "Department Details",
    STEP_CONFIRM: "Photo & Confirm",
}

_DEPARTMENT_PAYLOAD_KEYS = {
    Department.TECHNICAL: ("technical_data", "technicalData"),
    Department.MARKETING: ("marketing_data", "marketingData"),
    Department.ADMIN: ("admin_data", "adminData"),
}


@dataclass(frozen=True)
class WizardError:
    group: str  # location | required_fields | department_details
    title: str
    message: str


@dataclass
class SiteVisitWizard:
    department: Department
    step: int = STEP_PURPOSE
    location: Optional[Location] = None
    visit_purpose: Optional[str] = None
    customer: dict[str, Any] = field(default_factory=dict)
    department_data: dict[Department, Any] = field(default_factory=dict)
    notes: str = ""

    @classmethod
    def for_department(cls, department: str | Department) -> "SiteVisitWizard":
        try:
            dept = department if isinstance(department, Department) else Department.normalize(department)
        except ValueError:
            raise ValidationError(f"Unknown department: {department}")
        return cls(department=dept)

    @classmethod
    def from_payload(cls, department: str | Department, payload: Mapping[str, Any]) -> "SiteVisitWizard":
        wizard = cls.for_department(department)
        wizard.location = Location.from_dict(
            payload.get("site_in_location") or payload.get("siteInLocation") or payload.get("location"),
            required=False,
        )
        wizard.visit_purpose = payload.get("visit_purpose") or payload.get("visitPurpose")
        wizard.customer = dict(payload.get("customer") or {})
        for dept, keys in _DEPARTMENT_PAYLOAD_KEYS.items():
            data = payload.get(keys[0]) or payload.get(keys[1])
            if data:
                wizard.department_data[dept] = data
        wizard.notes = payload.get("notes") or ""
        return wizard

    # Step checks ----------------------------------------------------------

    def errors_for(self, step: int) -> list[str]:
        if step == STEP_PURPOSE:
            errors = []
            if self.location is None:
                errors.append("Please allow location detection to start a site visit")
            if not self._purpose_valid():
                errors.append("Please select a visit purpose")
            return errors

        if step == STEP_CUSTOMER:
            checks = [
                validate_customer_name(self.customer.get("name")),
                validate_mobile(self.customer.get("mobile")),
                validate_address(self.customer.get("address")),
            ]
            errors = [c.message for c in checks if not c.is_valid and c.message]
            if not (self.customer.get("property_type") or self.customer.get("propertyType")):
                errors.append("Property type is required")
            if not self.customer.get("source"):
                errors.append("Source is required")
            return errors

        if step == STEP_DEPARTMENT:
            if self.department not in _DEPARTMENT_PAYLOAD_KEYS:
                return [f"Site visits are not available for the {self.department.value} department"]
            if not self.department_data.get(self.department):
                return [f"Please complete the {self.department.value} department specific details"]
            return []

        if step == STEP_CONFIRM:
            return []
        raise ValidationError(f"Unknown wizard step: {step}")

    def can_proceed(self, step: Optional[int] = None) -> bool:
        """Whether the form may move past ``step`` (default: the current step)."""

        return not self.errors_for(self.step if step is None else step)

    def advance(self) -> int:
        errors = self.errors_for(self.step)
        if errors:
            raise ValidationError(errors[0])
        if self.step < STEP_CONFIRM:
            self.step += 1
        return self.step

    def back(self) -> int:
        if self.step > STEP_PURPOSE:
            self.step -= 1
        return self.step

    def validate_for_submit(self) -> Optional[WizardError]:
        """First failing group, checked in the order the form shows them."""

        if self.location is None:
            return WizardError(
                "location", "Location Required", "Please allow location detection to start a site visit"
            )
        if not self._purpose_valid() or self.errors_for(STEP_CUSTOMER):
            return WizardError("required_fields", "Required Fields", "Please fill in all required fields")
        dept_errors = self.errors_for(STEP_DEPARTMENT)
        if dept_errors:
            return WizardError("department_details", "Department Details Required", dept_errors[0])
        return None

    def _purpose_valid(self) -> bool:
        try:
            VisitPurpose(self.visit_purpose or "")
        except ValueError:
            return False
        return True
