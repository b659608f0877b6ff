"""Site visit domain objects.

Nested payloads (customer snapshot, photos, department data) come from the
mobile client with camelCase keys; ``from_dict`` accepts either spelling and
``to_dict`` always writes snake_case.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Mapping, Optional

from ..common.datetime_utils import parse_iso_datetime
from ..common.location import Location
from ..core.enums import (
    ActivityType,
    Department,
    FollowUpOutcome,
    FollowUpReason,
    MarketingProjectType,
    PropertyType,
    SiteVisitStatus,
    VisitOutcome,
    VisitPurpose,
)
from ..core.exceptions import ValidationError

SITE_VISIT_DEPARTMENTS = (Department.TECHNICAL, Department.MARKETING, Department.ADMIN)


def _get(data: Mapping[str, Any], snake: str, camel: Optional[str] = None, default: Any = None) -> Any:
    if snake in data:
        return data[snake]
    if camel and camel in data:
        return data[camel]
    return default


def _as_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return parse_iso_datetime(str(value))


@dataclass(frozen=True)
class CustomerDetails:
    name: str
    mobile: str
    address: Optional[str] = None
    eb_service_number: Optional[str] = None
    property_type: Optional[PropertyType] = None
    location: Optional[str] = None
    source: Optional[str] = None

    @property
    def group_key(self) -> str:
        return f"{self.mobile}_{self.name.lower()}"

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "CustomerDetails":
        data = data or {}
        ptype = _get(data, "property_type", "propertyType")
        try:
            property_type = PropertyType(ptype) if ptype else None
        except ValueError:
            raise ValidationError("Invalid property type")
        return cls(
            name=str(data.get("name") or "").strip(),
            mobile=str(data.get("mobile") or "").strip(),
            address=(data.get("address") or None),
            eb_service_number=_get(data, "eb_service_number", "ebServiceNumber") or None,
            property_type=property_type,
            location=data.get("location") or None,
            source=data.get("source") or None,
        )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "mobile": self.mobile,
            "address": self.address,
            "eb_service_number": self.eb_service_number,
            "property_type": self.property_type.value if self.property_type else None,
            "location": self.location,
            "source": self.source,
        }


@dataclass(frozen=True)
class SitePhoto:
    url: str
    location: Optional[Location] = None
    timestamp: Optional[datetime] = None
    description: Optional[str] = None

    @classmethod
    def from_value(cls, value: Any) -> Optional["SitePhoto"]:
        """Accept a bare URL or a photo object; ``None`` for anything unusable."""

        if isinstance(value, str):
            return cls(url=value) if value.strip() else None
        if isinstance(value, Mapping) and value.get("url"):
            return cls(
                url=str(value["url"]),
                location=Location.from_dict(value.get("location"), required=False),
                timestamp=_as_datetime(value.get("timestamp")),
                description=value.get("description") or None,
            )
        return None

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "location": self.location.to_dict() if self.location else None,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "description": self.description,
        }


@dataclass(frozen=True)
class TechnicalVisitData:
    work_type: str
    service_types: tuple[str, ...] = ()
    working_status: Optional[str] = None
    pending_remarks: Optional[str] = None
    team_members: tuple[str, ...] = ()
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TechnicalVisitData":
        work_type = _get(data, "work_type", "workType")
        if not work_type:
            raise ValidationError("Technical work type is required")
        return cls(
            work_type=str(work_type),
            service_types=tuple(_get(data, "service_types", "serviceTypes", ()) or ()),
            working_status=_get(data, "working_status", "workingStatus"),
            pending_remarks=_get(data, "pending_remarks", "pendingRemarks"),
            team_members=tuple(_get(data, "team_members", "teamMembers", ()) or ()),
            description=data.get("description"),
        )

    def to_dict(self) -> dict:
        return {
            "work_type": self.work_type,
            "service_types": list(self.service_types),
            "working_status": self.working_status,
            "pending_remarks": self.pending_remarks,
            "team_members": list(self.team_members),
            "description": self.description,
        }


_CONFIG_KEYS = {
    MarketingProjectType.ON_GRID: ("on_grid_config", "onGridConfig"),
    MarketingProjectType.OFF_GRID: ("off_grid_config", "offGridConfig"),
    MarketingProjectType.HYBRID: ("hybrid_config", "hybridConfig"),
    MarketingProjectType.WATER_HEATER: ("water_heater_config", "waterHeaterConfig"),
    MarketingProjectType.WATER_PUMP: ("water_pump_config", "waterPumpConfig"),
}


@dataclass(frozen=True)
class MarketingVisitData:
    """Requirement capture; ``configs`` maps project type to its configuration payload."""

    update_requirements: bool = False
    project_type: Optional[MarketingProjectType] = None
    configs: dict[MarketingProjectType, dict] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MarketingVisitData":
        raw_type = _get(data, "project_type", "projectType")
        try:
            project_type = MarketingProjectType(raw_type) if raw_type else None
        except ValueError:
            raise ValidationError("Invalid project type")

        configs: dict[MarketingProjectType, dict] = {}
        for ptype, (snake, camel) in _CONFIG_KEYS.items():
            cfg = _get(data, snake, camel)
            if cfg:
                configs[ptype] = dict(cfg)
        return cls(
            update_requirements=bool(_get(data, "update_requirements", "updateRequirements", False)),
            project_type=project_type,
            configs=configs,
        )

    @property
    def active_project(self) -> Optional[tuple[MarketingProjectType, dict]]:
        """The chosen project type with its configuration (empty when none was filled in).

        Without a chosen type, the first configuration present wins.
        """

        if self.project_type:
            return self.project_type, self.configs.get(self.project_type, {})
        for ptype in (
            MarketingProjectType.ON_GRID,
            MarketingProjectType.OFF_GRID,
            MarketingProjectType.HYBRID,
            MarketingProjectType.WATER_HEATER,
            MarketingProjectType.WATER_PUMP,
        ):
            if ptype in self.configs:
                return ptype, self.configs[ptype]
        return None

    @property
    def active_config(self) -> Optional[dict]:
        project = self.active_project
        return project[1] if project else None

    def to_dict(self) -> dict:
        out: dict[str, Any] = {
            "update_requirements": self.update_requirements,
            "project_type": self.project_type.value if self.project_type else None,
        }
        for ptype, cfg in self.configs.items():
            out[_CONFIG_KEYS[ptype][0]] = cfg
        return out


@dataclass(frozen=True)
class AdminVisitData:
    bank_process: Optional[dict] = None
    eb_process: Optional[dict] = None
    purchase: Optional[str] = None
    driving: Optional[str] = None
    official_cash_transactions: Optional[str] = None
    official_personal_work: Optional[str] = None
    others: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AdminVisitData":
        return cls(
            bank_process=_get(data, "bank_process", "bankProcess"),
            eb_process=_get(data, "eb_process", "ebProcess"),
            purchase=data.get("purchase"),
            driving=data.get("driving"),
            official_cash_transactions=_get(data, "official_cash_transactions", "officialCashTransactions"),
            official_personal_work=_get(data, "official_personal_work", "officialPersonalWork"),
            others=data.get("others"),
        )

    def to_dict(self) -> dict:
        return {
            "bank_process": self.bank_process,
            "eb_process": self.eb_process,
            "purchase": self.purchase,
            "driving": self.driving,
            "official_cash_transactions": self.official_cash_transactions,
            "official_personal_work": self.official_personal_work,
            "others": self.others,
        }


@dataclass(frozen=True)
class SiteVisit:
    visit_id: int
    user_id: int
    department: Department
    visit_purpose: VisitPurpose
    site_in_time: datetime
    site_in_location: Location
    customer: CustomerDetails
    site_in_photo_url: Optional[str] = None
    site_out_time: Optional[datetime] = None
    site_out_location: Optional[Location] = None
    site_out_photo_url: Optional[str] = None
    customer_id: Optional[int] = None
    technical_data: Optional[TechnicalVisitData] = None
    marketing_data: Optional[MarketingVisitData] = None
    admin_data: Optional[AdminVisitData] = None
    site_photos: tuple[SitePhoto, ...] = ()
    site_out_photos: tuple[SitePhoto, ...] = ()

    is_follow_up: bool = False
    follow_up_of: Optional[int] = None
    has_follow_ups: bool = False
    follow_up_count: int = 0
    follow_up_reason: Optional[str] = None

    status: SiteVisitStatus = SiteVisitStatus.IN_PROGRESS
    auto_corrected: bool = False
    auto_closed_at: Optional[datetime] = None
    auto_correction_reason: Optional[str] = None

    visit_outcome: Optional[VisitOutcome] = None
    outcome_notes: Optional[str] = None
    scheduled_follow_up_date: Optional[date] = None
    outcome_selected_at: Optional[datetime] = None
    outcome_selected_by: Optional[int] = None

    customer_current_status: Optional[VisitOutcome] = None
    last_activity_type: ActivityType = ActivityType.INITIAL_VISIT
    last_activity_date: Optional[datetime] = None
    active_follow_up_id: Optional[int] = None

    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    employee_name: Optional[str] = None

    @property
    def activity_time(self) -> datetime:
        return self.created_at or self.site_in_time

    @property
    def is_active(self) -> bool:
        return self.status == SiteVisitStatus.IN_PROGRESS


@dataclass(frozen=True)
class FollowUpVisit:
    follow_up_id: int
    original_visit_id: int
    user_id: int
    department: Department
    site_in_time: datetime
    site_in_location: Location
    customer: CustomerDetails
    description: str
    follow_up_reason: FollowUpReason = FollowUpReason.ADDITIONAL_WORK_REQUIRED
    site_in_photo_url: Optional[str] = None
    site_out_time: Optional[datetime] = None
    site_out_location: Optional[Location] = None
    site_out_photo_url: Optional[str] = None
    site_photos: tuple[str, ...] = ()
    site_out_photos: tuple[str, ...] = ()
    status: SiteVisitStatus = SiteVisitStatus.IN_PROGRESS
    visit_outcome: Optional[FollowUpOutcome] = None
    outcome_notes: Optional[str] = None
    scheduled_follow_up_date: Optional[date] = None
    outcome_selected_at: Optional[datetime] = None
    outcome_selected_by: Optional[int] = None
    original_customer_status: Optional[VisitOutcome] = None
    new_customer_status: Optional[VisitOutcome] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
