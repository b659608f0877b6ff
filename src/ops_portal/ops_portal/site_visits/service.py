from __future__ import annotations

import logging
from collections import Counter
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Mapping, Optional, Sequence

from ..activity.service import ActivityService
from ..common.datetime_utils import now_local, parse_iso_date
from ..common.location import Location
from ..core.constants import MAX_SITE_PHOTOS
from ..core.enums import (
    Department,
    QuickAction,
    Role,
    SiteVisitStatus,
    VisitOutcome,
    VisitPurpose,
)
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..customers.service import CustomerService
from ..users.repository import UserRepository
from .model import (
    SITE_VISIT_DEPARTMENTS,
    AdminVisitData,
    CustomerDetails,
    MarketingVisitData,
    SitePhoto,
    SiteVisit,
    TechnicalVisitData,
)
from .repository import SiteVisitRepository
from .wizard import SiteVisitWizard

logger = logging.getLogger(__name__)

MONITORS = (Role.MASTER_ADMIN, Role.ADMIN, Role.HR)

_CHECKOUT_STATUS = {
    VisitOutcome.CONVERTED: SiteVisitStatus.COMPLETED,
    VisitOutcome.ON_PROCESS: SiteVisitStatus.COMPLETED,
    VisitOutcome.CANCELLED: SiteVisitStatus.CANCELLED,
}


def collect_photos(values: Optional[Iterable[Any]], *, existing: Sequence[SitePhoto] = (), limit: int = MAX_SITE_PHOTOS):
    """Append usable photos to ``existing``; anything past ``limit`` is dropped."""

    photos = list(existing)
    for value in values or ():
        photo = SitePhoto.from_value(value)
        if photo is not None:
            photos.append(photo)
    return tuple(photos[:limit])


def optional_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parse_iso_date(str(value)[:10])


class SiteVisitService:
    def __init__(
        self,
        visits: SiteVisitRepository,
        customers: CustomerService,
        users: UserRepository,
        activity: Optional[ActivityService] = None,
    ):
        self._visits = visits
        self._customers = customers
        self._users = users
        self._activity = activity

    # Start / checkout ---------------------------------------------------------

    def start_visit(self, user_id: int, payload: Mapping[str, Any], *, now: Optional[datetime] = None) -> SiteVisit:
        now = now or now_local()
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")

        department = self._visit_department(user.department, payload.get("department"))
        wizard = SiteVisitWizard.from_payload(department, payload)
        problem = wizard.validate_for_submit()
        if problem is not None:
            raise ValidationError(problem.message)

        if self._visits.find_active_for_user(user.user_id):
            raise ConflictError("You already have an active site visit. Please check out first.")

        details = CustomerDetails.from_dict(wizard.customer)
        customer = self._customers.find_or_create_from_visit(wizard.customer, now=now)

        visit = SiteVisit(
            visit_id=0,
            user_id=user.user_id,
            department=department,
            visit_purpose=VisitPurpose(wizard.visit_purpose),
            site_in_time=now,
            site_in_location=wizard.location,
            customer=details,
            customer_id=customer.customer_id,
            site_in_photo_url=payload.get("site_in_photo_url") or payload.get("siteInPhotoUrl"),
            site_photos=collect_photos(payload.get("site_photos") or payload.get("sitePhotos")),
            customer_current_status=VisitOutcome.ON_PROCESS,
            last_activity_date=now,
            notes=wizard.notes or None,
            created_at=now,
            updated_at=now,
            **self._department_data(department, wizard),
        )
        visit_id = self._visits.create(visit)
        logger.info("Site visit %s started by user %s", visit_id, user.user_id)

        if self._activity:
            self._activity.log(
                type="site_visit",
                title="Site Visit Started",
                description=f"{user.full_name} started a {visit.visit_purpose.value} visit for {details.name}",
                entity_id=str(visit_id),
                entity_type="site_visit",
                user_id=user.user_id,
                now=now,
            )
        return self.get(visit_id)

    def checkout(
        self,
        visit_id: int,
        *,
        user_id: int,
        payload: Mapping[str, Any],
        now: Optional[datetime] = None,
    ) -> SiteVisit:
        now = now or now_local()
        visit = self.get(visit_id)
        if visit.user_id != int(user_id):
            raise AuthorizationError("You can only check out your own site visits")
        if not visit.is_active:
            raise ConflictError("Site visit is not in progress")

        location = Location.from_dict(payload.get("site_out_location") or payload.get("location"))
        raw_outcome = payload.get("visit_outcome") or payload.get("outcome")
        if not raw_outcome:
            raise ValidationError("Please select a visit outcome")
        try:
            outcome = VisitOutcome(raw_outcome)
        except ValueError:
            raise ValidationError(f"Invalid visit outcome: {raw_outcome}")

        follow_up_date = optional_date(payload.get("scheduled_follow_up_date"))
        if outcome == VisitOutcome.ON_PROCESS and follow_up_date is None:
            raise ValidationError("Scheduled follow-up date is required when the visit is still on process")

        updated = replace(
            visit,
            site_out_time=now,
            site_out_location=location,
            site_out_photo_url=payload.get("site_out_photo_url") or visit.site_out_photo_url,
            site_out_photos=collect_photos(payload.get("site_out_photos"), existing=visit.site_out_photos),
            status=_CHECKOUT_STATUS[outcome],
            visit_outcome=outcome,
            outcome_notes=payload.get("outcome_notes") or None,
            scheduled_follow_up_date=follow_up_date if outcome == VisitOutcome.ON_PROCESS else None,
            outcome_selected_at=now,
            outcome_selected_by=int(user_id),
            customer_current_status=outcome,
            last_activity_date=now,
            notes=payload.get("notes") or visit.notes,
            updated_at=now,
        )
        self._visits.update(updated)
        logger.info("Site visit %s checked out with outcome %s", visit.visit_id, outcome.value)

        if self._activity:
            self._activity.log(
                type="site_visit",
                title="Site Visit Completed",
                description=f"Visit for {visit.customer.name} closed as {outcome.value}",
                entity_id=str(visit.visit_id),
                entity_type="site_visit",
                user_id=visit.user_id,
                now=now,
            )
        return self.get(visit.visit_id)

    def add_photos(
        self,
        visit_id: int,
        photos: Iterable[Any],
        *,
        user_id: int,
        actor_role: Optional[Role] = None,
        now: Optional[datetime] = None,
    ) -> SiteVisit:
        visit = self._get_for_update(visit_id, user_id, actor_role)
        merged = collect_photos(photos, existing=visit.site_photos)
        self._visits.update(replace(visit, site_photos=merged, updated_at=now or now_local()))
        return self.get(visit.visit_id)

    def quick_update(
        self,
        visit_id: int,
        action: QuickAction | str,
        *,
        user_id: int,
        actor_role: Optional[Role] = None,
        scheduled_follow_up_date: Any = None,
        outcome_notes: Optional[str] = None,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> SiteVisit:
        """Set an outcome without the full checkout flow."""

        now = now or now_local()
        try:
            action = QuickAction(action)
        except ValueError:
            raise ValidationError(f"Invalid quick action: {action}")
        visit = self._get_for_update(visit_id, user_id, actor_role)

        if action == QuickAction.CONVERT:
            updated = replace(
                visit,
                visit_outcome=VisitOutcome.CONVERTED,
                customer_current_status=VisitOutcome.CONVERTED,
                status=SiteVisitStatus.COMPLETED,
                scheduled_follow_up_date=None,
                outcome_notes=outcome_notes or visit.outcome_notes,
                outcome_selected_at=now,
                outcome_selected_by=int(user_id),
            )
        elif action == QuickAction.CANCEL:
            updated = replace(
                visit,
                visit_outcome=VisitOutcome.CANCELLED,
                customer_current_status=VisitOutcome.CANCELLED,
                status=SiteVisitStatus.CANCELLED,
                scheduled_follow_up_date=None,
                outcome_notes=reason or outcome_notes or visit.outcome_notes,
                outcome_selected_at=now,
                outcome_selected_by=int(user_id),
            )
        else:
            follow_up_date = optional_date(scheduled_follow_up_date)
            if follow_up_date is None:
                raise ValidationError("Scheduled follow-up date is required for reschedule action")
            # not a final outcome, so outcome_selected_* stay as they were
            updated = replace(
                visit,
                visit_outcome=VisitOutcome.ON_PROCESS,
                customer_current_status=VisitOutcome.ON_PROCESS,
                scheduled_follow_up_date=follow_up_date,
                outcome_notes=(reason or outcome_notes) or visit.outcome_notes,
            )

        self._visits.update(replace(updated, last_activity_date=now, updated_at=now))
        logger.info("Site visit %s quick update: %s", visit.visit_id, action.value)
        return self.get(visit.visit_id)

    # Queries -----------------------------------------------------------------

    def get(self, visit_id: int) -> SiteVisit:
        visit = self._visits.get(int(visit_id))
        if not visit:
            raise NotFoundError("Site visit not found")
        return visit

    def _get_for_update(self, visit_id: int, user_id: int, actor_role: Optional[Role]) -> SiteVisit:
        visit = self.get(visit_id)
        if visit.user_id != int(user_id) and actor_role not in MONITORS:
            raise AuthorizationError("You can only update your own site visits")
        return visit

    def list(
        self,
        *,
        user_id: Optional[int] = None,
        department: Optional[Department] = None,
        status: Optional[SiteVisitStatus | str] = None,
        visit_outcome: Optional[VisitOutcome | str] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
        limit: int = 500,
    ) -> Sequence[SiteVisit]:
        try:
            status = SiteVisitStatus(status) if status else None
            visit_outcome = VisitOutcome(visit_outcome) if visit_outcome else None
        except ValueError as exc:
            raise ValidationError(str(exc))
        return self._visits.list_visits(
            user_id=user_id,
            department=department,
            status=status,
            visit_outcome=visit_outcome,
            start=datetime.combine(start, datetime.min.time()) if start else None,
            end=datetime.combine(end + timedelta(days=1), datetime.min.time()) if end else None,
            limit=int(limit),
        )

    def list_for_user(self, user_id: int, *, limit: int = 50) -> Sequence[SiteVisit]:
        return self._visits.list_visits(user_id=int(user_id), limit=int(limit))

    def list_active(self, *, department: Optional[Department] = None) -> Sequence[SiteVisit]:
        return self._visits.list_visits(department=department, status=SiteVisitStatus.IN_PROGRESS)

    def stats(
        self,
        *,
        department: Optional[Department] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> dict[str, Any]:
        visits = self.list(department=department, start=start, end=end, limit=100000)
        statuses = Counter(v.status for v in visits)
        departments = Counter(v.department for v in visits)
        return {
            "total": len(visits),
            "in_progress": statuses[SiteVisitStatus.IN_PROGRESS],
            "completed": statuses[SiteVisitStatus.COMPLETED],
            "cancelled": statuses[SiteVisitStatus.CANCELLED],
            "auto_closed": statuses[SiteVisitStatus.AUTO_CLOSED],
            "by_department": {d.value: departments[d] for d in SITE_VISIT_DEPARTMENTS},
            "by_purpose": dict(Counter(v.visit_purpose.value for v in visits)),
        }

    def delete(self, visit_id: int, *, actor_role: Role) -> None:
        if not actor_role.is_admin:
            raise AuthorizationError("Only administrators can delete site visits")
        visit = self.get(visit_id)
        self._visits.delete(visit.visit_id)
        logger.info("Site visit %s deleted", visit.visit_id)

    # Helpers -----------------------------------------------------------------

    @staticmethod
    def _visit_department(user_department: Optional[Department], requested: Any) -> Department:
        department = user_department
        if department is None and requested:
            try:
                department = Department.normalize(str(requested))
            except ValueError:
                raise ValidationError(f"Unknown department: {requested}")
        if department not in SITE_VISIT_DEPARTMENTS:
            raise ValidationError("Site visits are available to technical, marketing and admin staff only")
        return department

    @staticmethod
    def _department_data(department: Department, wizard: SiteVisitWizard) -> dict[str, Any]:
        data = wizard.department_data.get(department) or {}
        if department == Department.TECHNICAL:
            return {"technical_data": TechnicalVisitData.from_dict(data)}
        if department == Department.MARKETING:
            return {"marketing_data": MarketingVisitData.from_dict(data)}
        return {"admin_data": AdminVisitData.from_dict(data)}
