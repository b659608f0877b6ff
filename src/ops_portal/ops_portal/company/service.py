from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

from ..activity.service import ActivityService
from ..common.datetime_utils import now_local, parse_iso_date
from ..common.validators import require_min_length, require_non_empty
from ..core.enums import Department, HolidayType, PayrollPeriodStatus, Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from .model import CompanySettings, Holiday, PayrollPeriod
from .repository import CompanyRepository

logger = logging.getLogger(__name__)

PeriodLockListener = Callable[[int, int], Any]


class CompanyCalendarService:
    """Company settings, holiday calendar and payroll period locks."""

    def __init__(self, company: CompanyRepository, activity: Optional[ActivityService] = None):
        self._company = company
        self._activity = activity
        self._lock_listeners: list[PeriodLockListener] = []

    def add_lock_listener(self, listener: PeriodLockListener) -> None:
        """Called with (month, year) after a payroll period is locked."""

        self._lock_listeners.append(listener)

    # Settings -----------------------------------------------------------

    def get_settings(self) -> CompanySettings:
        return self._company.get_settings() or CompanySettings()

    def update_settings(
        self,
        *,
        admin_id: int,
        weekend_days: Optional[Iterable[int]] = None,
        default_ot_rate: Optional[float] = None,
        max_ot_hours_per_day: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> CompanySettings:
        current = self.get_settings()
        changes: dict[str, Any] = {}

        if weekend_days is not None:
            days = tuple(sorted({int(d) for d in weekend_days}))
            if any(d < 0 or d > 6 for d in days):
                raise ValidationError("Weekend days must be between 0 (Monday) and 6 (Sunday)")
            changes["weekend_days"] = days
        if default_ot_rate is not None:
            if float(default_ot_rate) <= 0:
                raise ValidationError("OT rate must be positive")
            changes["default_ot_rate"] = float(default_ot_rate)
        if max_ot_hours_per_day is not None:
            if not 0 < float(max_ot_hours_per_day) <= 24:
                raise ValidationError("Max OT hours per day must be between 0 and 24")
            changes["max_ot_hours_per_day"] = float(max_ot_hours_per_day)

        updated = replace(current, updated_by=int(admin_id), updated_at=now or now_local(), **changes)
        self._company.save_settings(updated)
        return updated

    def is_weekend(self, day: date) -> bool:
        return day.weekday() in self.get_settings().weekend_days

    # Holidays -----------------------------------------------------------

    def holiday_for(self, day: date, department: Optional[Department] = None) -> Optional[Holiday]:
        for holiday in self._company.holidays_on(day):
            if holiday.applies_to(department):
                return holiday
        return None

    def list_holidays(self, *, year: Optional[int] = None) -> Sequence[Holiday]:
        return self._company.list_holidays(year=year)

    def create_holiday(self, *, admin_id: int, data: Mapping[str, Any]) -> Holiday:
        holiday = self._holiday_from(data, holiday_id=0, created_by=int(admin_id))
        holiday_id = self._company.create_holiday(holiday)
        logger.info("Holiday %s created for %s", holiday.name, holiday.holiday_date)
        return replace(holiday, holiday_id=holiday_id)

    def update_holiday(self, *, holiday_id: int, data: Mapping[str, Any]) -> Holiday:
        existing = self._company.get_holiday(int(holiday_id))
        if not existing:
            raise NotFoundError("Holiday not found")
        merged = {
            "name": existing.name,
            "date": existing.holiday_date,
            "type": existing.type.value,
            "allow_ot": existing.allow_ot,
            "is_active": existing.is_active,
            "applicable_departments": (
                [d.value for d in existing.applicable_departments] if existing.applicable_departments is not None else None
            ),
            "description": existing.description,
        }
        merged.update(data)
        holiday = self._holiday_from(merged, holiday_id=existing.holiday_id, created_by=existing.created_by)
        self._company.update_holiday(holiday)
        return holiday

    def delete_holiday(self, holiday_id: int) -> None:
        if not self._company.delete_holiday(int(holiday_id)):
            raise NotFoundError("Holiday not found")

    @staticmethod
    def _holiday_from(data: Mapping[str, Any], *, holiday_id: int, created_by: Optional[int]) -> Holiday:
        name = require_non_empty(data.get("name") or "", "Holiday name")
        raw_date = data.get("date")
        if isinstance(raw_date, date):
            holiday_date = raw_date
        else:
            holiday_date = parse_iso_date(str(raw_date or ""))

        try:
            htype = HolidayType(data.get("type") or HolidayType.NATIONAL.value)
        except ValueError:
            raise ValidationError("Invalid holiday type")

        depts = data.get("applicable_departments")
        applicable = None
        if depts is not None:
            try:
                applicable = tuple(Department.normalize(d) for d in depts)
            except ValueError:
                raise ValidationError("Unknown department in applicable departments")

        return Holiday(
            holiday_id=holiday_id,
            name=name,
            holiday_date=holiday_date,
            type=htype,
            allow_ot=bool(data.get("allow_ot", False)),
            is_active=bool(data.get("is_active", True)),
            applicable_departments=applicable,
            description=(data.get("description") or "").strip() or None,
            created_by=created_by,
        )

    # Payroll lock -------------------------------------------------------

    def is_payroll_locked(self, day: date) -> bool:
        period = self._company.get_payroll_period(month=day.month, year=day.year)
        return bool(period and period.is_locked)

    def get_period(self, *, month: int, year: int) -> PayrollPeriod:
        self._validate_period(month, year)
        return self._company.get_payroll_period(month=month, year=year) or PayrollPeriod(month=month, year=year)

    def lock_period(self, *, month: int, year: int, admin_id: int, admin_role: Role, now: Optional[datetime] = None) -> PayrollPeriod:
        if admin_role != Role.MASTER_ADMIN:
            raise AuthorizationError("Only master admin can lock payroll periods")
        self._validate_period(month, year)

        existing = self._company.get_payroll_period(month=month, year=year)
        if existing and existing.is_locked:
            raise ConflictError("Payroll period is already locked")

        period = PayrollPeriod(
            month=int(month),
            year=int(year),
            status=PayrollPeriodStatus.LOCKED,
            locked_at=now or now_local(),
            locked_by=int(admin_id),
            notes=list(existing.notes) if existing else [],
        )
        self._company.save_payroll_period(period)

        for listener in self._lock_listeners:
            listener(period.month, period.year)

        logger.info("Payroll period %s locked by %s", period.period_id, admin_id)
        if self._activity:
            self._activity.log(
                type="payroll",
                title="Payroll Period Locked",
                description=f"Payroll for {month}/{year} locked by master admin",
                entity_id=period.period_id,
                entity_type="payroll_period",
                user_id=int(admin_id),
            )
        return period

    def unlock_period(
        self,
        *,
        month: int,
        year: int,
        reason: str,
        admin_id: int,
        admin_role: Role,
        now: Optional[datetime] = None,
    ) -> PayrollPeriod:
        if admin_role != Role.MASTER_ADMIN:
            raise AuthorizationError("Only master admin can unlock payroll periods")
        reason = require_min_length((reason or "").strip(), "Reason", 10)

        existing = self._company.get_payroll_period(month=int(month), year=int(year))
        if not existing:
            raise NotFoundError("Payroll period not found")
        if not existing.is_locked:
            raise ValidationError("Payroll period is not locked")

        stamp = (now or now_local()).strftime("%Y-%m-%d %H:%M")
        period = replace(
            existing,
            status=PayrollPeriodStatus.OPEN,
            notes=[*existing.notes, f"{stamp} unlocked by {admin_id}: {reason}"],
        )
        self._company.save_payroll_period(period)

        logger.warning("Payroll period %s unlocked by %s: %s", period.period_id, admin_id, reason)
        if self._activity:
            self._activity.log(
                type="payroll",
                title="Payroll Period Unlocked",
                description=f"Payroll for {month}/{year} unlocked. Reason: {reason}",
                entity_id=period.period_id,
                entity_type="payroll_period",
                user_id=int(admin_id),
            )
        return period

    @staticmethod
    def _validate_period(month: int, year: int) -> None:
        if not 1 <= int(month) <= 12:
            raise ValidationError("Invalid month")
        if int(year) < 2024:
            raise ValidationError("Invalid year")
