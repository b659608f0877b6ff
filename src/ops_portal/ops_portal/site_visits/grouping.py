"""Customer-centric views over site visits and follow-ups."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional, Sequence

from ..core.enums import ActivityType, SiteVisitStatus, VisitOutcome, VisitPurpose
from .model import FollowUpVisit, SitePhoto, SiteVisit


@dataclass
class CustomerVisitGroup:
    customer_mobile: str
    customer_name: str
    customer_address: Optional[str]
    primary_visit: SiteVisit
    follow_ups: list[SiteVisit] = field(default_factory=list)
    total_visits: int = 1
    latest_status: SiteVisitStatus = SiteVisitStatus.IN_PROGRESS
    has_active_visit: bool = False

    @property
    def all_visits(self) -> list[SiteVisit]:
        return [self.primary_visit, *self.follow_ups]

    @property
    def latest_activity(self):
        return max(v.activity_time for v in self.all_visits)

    @property
    def earliest_scheduled_follow_up(self) -> Optional[date]:
        dates = [v.scheduled_follow_up_date for v in self.all_visits if v.scheduled_follow_up_date]
        return min(dates) if dates else None


def effective_customer_status(visit: SiteVisit) -> Optional[VisitOutcome]:
    """The outcome chosen at checkout wins over the dynamic follow-up status."""

    return visit.visit_outcome or visit.customer_current_status


def follow_up_as_visit(follow_up: FollowUpVisit) -> SiteVisit:
    if follow_up.status == SiteVisitStatus.IN_PROGRESS:
        current = VisitOutcome.ON_PROCESS
    elif follow_up.status == SiteVisitStatus.COMPLETED:
        current = follow_up.new_customer_status or follow_up.original_customer_status or VisitOutcome.ON_PROCESS
    else:
        current = VisitOutcome.ON_PROCESS

    return SiteVisit(
        visit_id=follow_up.follow_up_id,
        user_id=follow_up.user_id,
        department=follow_up.department,
        visit_purpose=VisitPurpose.VISIT,
        site_in_time=follow_up.site_in_time,
        site_in_location=follow_up.site_in_location,
        customer=follow_up.customer,
        site_in_photo_url=follow_up.site_in_photo_url,
        site_out_time=follow_up.site_out_time,
        site_out_location=follow_up.site_out_location,
        site_out_photo_url=follow_up.site_out_photo_url,
        site_photos=tuple(SitePhoto(url=u) for u in follow_up.site_photos),
        site_out_photos=tuple(SitePhoto(url=u) for u in follow_up.site_out_photos),
        is_follow_up=True,
        follow_up_of=follow_up.original_visit_id,
        follow_up_reason=follow_up.follow_up_reason.value,
        status=follow_up.status,
        visit_outcome=follow_up.visit_outcome.to_customer_status() if follow_up.visit_outcome else None,
        outcome_notes=follow_up.outcome_notes,
        scheduled_follow_up_date=follow_up.scheduled_follow_up_date,
        outcome_selected_at=follow_up.outcome_selected_at,
        outcome_selected_by=follow_up.outcome_selected_by,
        customer_current_status=current,
        last_activity_type=ActivityType.FOLLOW_UP,
        last_activity_date=follow_up.updated_at,
        notes=follow_up.notes or follow_up.description,
        created_at=follow_up.created_at,
        updated_at=follow_up.updated_at,
    )


def combine_visits_and_follow_ups(
    visits: Iterable[SiteVisit],
    follow_ups: Iterable[FollowUpVisit],
) -> list[SiteVisit]:
    combined = [*visits, *(follow_up_as_visit(f) for f in follow_ups)]
    combined.sort(key=lambda v: v.activity_time, reverse=True)
    return combined


def _replaces_primary(candidate: SiteVisit, primary: SiteVisit) -> bool:
    candidate_has = candidate.visit_outcome is not None
    primary_has = primary.visit_outcome is not None
    if candidate_has != primary_has:
        return candidate_has
    return candidate.activity_time > primary.activity_time


def group_visits_by_customer(
    visits: Optional[Sequence[SiteVisit]],
    preserve_priority_order: bool = False,
) -> list[CustomerVisitGroup]:
    """Group by mobile + lower-cased name.

    The primary visit is the newest one with an outcome (or the newest
    overall when none has one); the rest become the group's follow-ups.
    """

    groups: dict[str, CustomerVisitGroup] = {}
    for visit in visits or ():
        key = visit.customer.group_key
        group = groups.get(key)
        if group is None:
            groups[key] = CustomerVisitGroup(
                customer_mobile=visit.customer.mobile,
                customer_name=visit.customer.name,
                customer_address=visit.customer.address,
                primary_visit=visit,
                latest_status=visit.status,
                has_active_visit=visit.status == SiteVisitStatus.IN_PROGRESS,
            )
            continue

        if _replaces_primary(visit, group.primary_visit):
            group.follow_ups.insert(0, group.primary_visit)
            group.primary_visit = visit
        else:
            group.follow_ups.append(visit)
        group.total_visits += 1

        if visit.status == SiteVisitStatus.IN_PROGRESS:
            group.has_active_visit = True
            group.latest_status = SiteVisitStatus.IN_PROGRESS
        elif group.latest_status != SiteVisitStatus.IN_PROGRESS:
            group.latest_status = visit.status

    result = list(groups.values())
    for group in result:
        group.follow_ups.sort(key=lambda v: v.activity_time, reverse=True)

    if preserve_priority_order:
        # groups without a scheduled follow-up date go last
        result.sort(key=lambda g: (g.earliest_scheduled_follow_up is None, g.earliest_scheduled_follow_up or date.max))
    else:
        result.sort(key=lambda g: g.latest_activity, reverse=True)
    return result


def filter_groups_by_outcome(
    groups: Sequence[CustomerVisitGroup],
    outcome: Optional[VisitOutcome | str],
) -> list[CustomerVisitGroup]:
    if not outcome:
        return list(groups)
    wanted = VisitOutcome(outcome)
    return [g for g in groups if any(effective_customer_status(v) == wanted for v in g.all_visits)]
