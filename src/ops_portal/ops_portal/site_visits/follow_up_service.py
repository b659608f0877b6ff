from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional, Sequence

from ..activity.service import ActivityService
from ..common.datetime_utils import now_local
from ..common.location import Location
from ..core.constants import MAX_FOLLOW_UP_PHOTOS, MIN_FOLLOW_UP_DESCRIPTION
from ..core.enums import ActivityType, Department, FollowUpOutcome, FollowUpReason, SiteVisitStatus, VisitOutcome
from ..core.exceptions import AuthorizationError, ConflictError, DomainError, NotFoundError, ValidationError
from .model import FollowUpVisit, SitePhoto
from .repository import FollowUpRepository, SiteVisitRepository
from .service import optional_date

logger = logging.getLogger(__name__)


def photo_urls(values: Optional[Iterable[Any]], *, limit: int = MAX_FOLLOW_UP_PHOTOS) -> tuple[str, ...]:
    """Reduce photo payloads (URLs or photo objects) to URL strings."""

    urls = []
    for value in values or ():
        photo = SitePhoto.from_value(value)
        if photo is not None:
            urls.append(photo.url)
    return tuple(urls[:limit])


class FollowUpService:
    def __init__(
        self,
        follow_ups: FollowUpRepository,
        visits: SiteVisitRepository,
        activity: Optional[ActivityService] = None,
    ):
        self._follow_ups = follow_ups
        self._visits = visits
        self._activity = activity

    def create_follow_up(
        self,
        user_id: int,
        payload: Mapping[str, Any],
        *,
        now: Optional[datetime] = None,
    ) -> FollowUpVisit:
        now = now or now_local()
        original_id = payload.get("original_visit_id") or payload.get("originalVisitId")
        if not original_id:
            raise ValidationError("Original visit is required")
        original = self._visits.get(int(original_id))
        if not original:
            raise NotFoundError(f"Original visit {original_id} not found")

        current_status = original.customer_current_status or original.visit_outcome
        if current_status is None:
            raise ValidationError(f"Original visit {original_id} has no customer status - cannot create follow-up")

        description = str(payload.get("description") or "").strip()
        if len(description) < MIN_FOLLOW_UP_DESCRIPTION:
            raise ValidationError(f"Description must be at least {MIN_FOLLOW_UP_DESCRIPTION} characters")

        raw_reason = payload.get("follow_up_reason") or payload.get("followUpReason")
        try:
            reason = FollowUpReason(raw_reason) if raw_reason else FollowUpReason.ADDITIONAL_WORK_REQUIRED
        except ValueError:
            raise ValidationError(f"Invalid follow-up reason: {raw_reason}")

        follow_up = FollowUpVisit(
            follow_up_id=0,
            original_visit_id=original.visit_id,
            user_id=int(user_id),
            department=original.department,
            site_in_time=now,
            site_in_location=Location.from_dict(payload.get("site_in_location") or payload.get("location")),
            customer=original.customer,
            description=description,
            follow_up_reason=reason,
            site_in_photo_url=payload.get("site_in_photo_url"),
            site_photos=photo_urls(payload.get("site_photos")),
            original_customer_status=current_status,
            notes=payload.get("notes") or None,
            created_at=now,
            updated_at=now,
        )
        follow_up_id = self._follow_ups.create(follow_up)

        try:
            self._visits.update(
                replace(
                    original,
                    follow_up_count=original.follow_up_count + 1,
                    has_follow_ups=True,
                    customer_current_status=VisitOutcome.ON_PROCESS,
                    last_activity_type=ActivityType.FOLLOW_UP,
                    last_activity_date=now,
                    active_follow_up_id=follow_up_id,
                    updated_at=now,
                )
            )
        except Exception:
            logger.exception("Updating visit %s for follow-up %s failed", original.visit_id, follow_up_id)
            self._follow_ups.delete(follow_up_id)
            raise DomainError("Failed to update original visit status - follow-up creation aborted")

        logger.info("Follow-up %s created for visit %s", follow_up_id, original.visit_id)
        if self._activity:
            self._activity.log(
                type="site_visit",
                title="Follow-up Visit Started",
                description=f"Follow-up ({reason.value}) for {original.customer.name}",
                entity_id=str(follow_up_id),
                entity_type="follow_up_visit",
                user_id=int(user_id),
                now=now,
            )
        return self.get(follow_up_id)

    def checkout_follow_up(
        self,
        follow_up_id: int,
        *,
        user_id: int,
        payload: Mapping[str, Any],
        now: Optional[datetime] = None,
    ) -> FollowUpVisit:
        now = now or now_local()
        follow_up = self.get(follow_up_id)
        if follow_up.user_id != int(user_id):
            raise AuthorizationError("You can only check out your own follow-up visits")
        if follow_up.status != SiteVisitStatus.IN_PROGRESS:
            raise ConflictError("Follow-up visit is not in progress")

        raw_outcome = payload.get("visit_outcome") or payload.get("outcome")
        try:
            outcome = FollowUpOutcome(raw_outcome)
        except ValueError:
            raise ValidationError(f"Invalid follow-up outcome: {raw_outcome}")
        new_status = outcome.to_customer_status()

        updated = replace(
            follow_up,
            site_out_time=now,
            site_out_location=Location.from_dict(payload.get("site_out_location") or payload.get("location")),
            site_out_photo_url=payload.get("site_out_photo_url") or follow_up.site_out_photo_url,
            site_out_photos=photo_urls(payload.get("site_out_photos")),
            status=SiteVisitStatus.COMPLETED,
            visit_outcome=outcome,
            outcome_notes=payload.get("outcome_notes") or None,
            scheduled_follow_up_date=optional_date(payload.get("scheduled_follow_up_date")),
            outcome_selected_at=now,
            outcome_selected_by=int(user_id),
            new_customer_status=new_status,
            notes=payload.get("notes") or follow_up.notes,
            updated_at=now,
        )
        self._follow_ups.update(updated)

        original = self._visits.get(follow_up.original_visit_id)
        if original is None:
            logger.warning("Original visit %s missing for follow-up %s", follow_up.original_visit_id, follow_up_id)
        else:
            self._visits.update(
                replace(
                    original,
                    customer_current_status=new_status,
                    last_activity_type=ActivityType.FOLLOW_UP,
                    last_activity_date=now,
                    active_follow_up_id=None,
                    updated_at=now,
                )
            )

        logger.info("Follow-up %s checked out as %s", follow_up_id, outcome.value)
        return self.get(follow_up_id)

    def get(self, follow_up_id: int) -> FollowUpVisit:
        follow_up = self._follow_ups.get(int(follow_up_id))
        if not follow_up:
            raise NotFoundError(f"Follow-up {follow_up_id} not found")
        return follow_up

    def list_for_visit(self, original_visit_id: int) -> Sequence[FollowUpVisit]:
        follow_ups = list(self._follow_ups.list_for_visit(int(original_visit_id)))
        follow_ups.sort(key=lambda f: f.created_at or f.site_in_time, reverse=True)
        return follow_ups

    def list_for_user(
        self,
        user_id: int,
        *,
        department: Optional[Department] = None,
        status: Optional[SiteVisitStatus | str] = None,
    ) -> Sequence[FollowUpVisit]:
        try:
            status = SiteVisitStatus(status) if status else None
        except ValueError:
            raise ValidationError(f"Invalid status: {status}")
        return self._follow_ups.list_follow_ups(user_id=int(user_id), department=department, status=status)

    def list_all(self) -> Sequence[FollowUpVisit]:
        return self._follow_ups.list_follow_ups()
