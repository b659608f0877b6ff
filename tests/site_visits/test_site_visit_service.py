from dataclasses import replace
from datetime import date, datetime

import pytest

from fakes import visit_payload
from ops_portal.core.enums import Department, MarketingProjectType, Role, SiteVisitStatus, VisitOutcome
from ops_portal.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError

START = datetime(2025, 1, 6, 10, 0)
END = datetime(2025, 1, 6, 11, 30)
OUT = {"latitude": 11.02, "longitude": 76.96}


def test_start_visit_records_department_data_and_customer(container, repos):
    visit = container.site_visit_service.start_visit(2, visit_payload(), now=START)

    assert visit.department == Department.MARKETING
    assert visit.status == SiteVisitStatus.IN_PROGRESS
    assert visit.visit_outcome is None
    assert visit.customer_current_status == VisitOutcome.ON_PROCESS
    assert visit.marketing_data.project_type == MarketingProjectType.ON_GRID
    assert visit.marketing_data.active_config["panelCount"] == 6
    assert visit.technical_data is None
    assert visit.employee_name == "Priya Nair"
    assert visit.customer.property_type.value == "commercial"

    customer = repos.customers.get(visit.customer_id)
    assert customer.name == "Lakshmi Traders"
    assert customer.created_from == "site_visit"
    assert "Site Visit Started" in repos.activity.titles()


def test_existing_customer_is_reused(container, repos):
    first = container.site_visit_service.start_visit(2, visit_payload(), now=START)
    customer = dict(visit_payload()["customer"], name="LAKSHMI traders")
    second = container.site_visit_service.start_visit(1, visit_payload(customer=customer), now=START)

    assert second.customer_id == first.customer_id
    assert second.technical_data.work_type == "installation"
    assert len(repos.customers.customers) == 1


def test_only_one_active_visit_per_user(container):
    container.site_visit_service.start_visit(3, visit_payload(), now=START)

    with pytest.raises(ConflictError):
        container.site_visit_service.start_visit(3, visit_payload(), now=END)


def test_department_rules(container):
    with pytest.raises(ValidationError):
        container.site_visit_service.start_visit(4, visit_payload(), now=START)

    visit = container.site_visit_service.start_visit(90, visit_payload(department="Administration"), now=START)
    assert visit.department == Department.ADMIN
    assert visit.admin_data.purchase == "DC cables"


def test_invalid_payload_is_rejected(container):
    with pytest.raises(ValidationError, match="required fields"):
        container.site_visit_service.start_visit(1, visit_payload(visit_purpose=None), now=START)
    with pytest.raises(ValidationError, match="technical department"):
        container.site_visit_service.start_visit(1, visit_payload(technical_data=None), now=START)
    with pytest.raises(NotFoundError):
        container.site_visit_service.start_visit(404, visit_payload(), now=START)


@pytest.mark.parametrize(
    "outcome,status",
    [("converted", SiteVisitStatus.COMPLETED), ("cancelled", SiteVisitStatus.CANCELLED)],
)
def test_checkout_outcomes(container, outcome, status):
    visit = container.site_visit_service.start_visit(1, visit_payload(), now=START)

    closed = container.site_visit_service.checkout(
        visit.visit_id,
        user_id=1,
        payload={"site_out_location": OUT, "visit_outcome": outcome, "scheduled_follow_up_date": "2025-01-10"},
        now=END,
    )

    assert closed.status == status
    assert closed.visit_outcome == VisitOutcome(outcome)
    assert closed.customer_current_status == VisitOutcome(outcome)
    assert closed.scheduled_follow_up_date is None
    assert closed.site_out_time == END
    assert closed.outcome_selected_by == 1


def test_on_process_checkout_needs_follow_up_date(container):
    svc = container.site_visit_service
    visit = svc.start_visit(1, visit_payload(), now=START)

    with pytest.raises(ValidationError):
        svc.checkout(visit.visit_id, user_id=1, payload={"site_out_location": OUT, "visit_outcome": "on_process"})

    closed = svc.checkout(
        visit.visit_id,
        user_id=1,
        payload={"site_out_location": OUT, "visit_outcome": "on_process", "scheduled_follow_up_date": "2025-01-10"},
        now=END,
    )
    assert closed.status == SiteVisitStatus.COMPLETED
    assert closed.scheduled_follow_up_date == date(2025, 1, 10)


def test_checkout_guards(container):
    svc = container.site_visit_service
    visit = svc.start_visit(1, visit_payload(), now=START)

    with pytest.raises(AuthorizationError):
        svc.checkout(visit.visit_id, user_id=2, payload={"site_out_location": OUT, "visit_outcome": "converted"})
    with pytest.raises(ValidationError):
        svc.checkout(visit.visit_id, user_id=1, payload={"site_out_location": OUT})
    with pytest.raises(ValidationError):
        svc.checkout(visit.visit_id, user_id=1, payload={"site_out_location": OUT, "visit_outcome": "won"})
    with pytest.raises(ValidationError):
        svc.checkout(visit.visit_id, user_id=1, payload={"visit_outcome": "converted"})

    svc.checkout(visit.visit_id, user_id=1, payload={"site_out_location": OUT, "visit_outcome": "converted"}, now=END)
    with pytest.raises(ConflictError):
        svc.checkout(visit.visit_id, user_id=1, payload={"site_out_location": OUT, "visit_outcome": "converted"})


def test_photos_are_capped(container):
    svc = container.site_visit_service
    visit = svc.start_visit(1, visit_payload(site_photos=["https://cdn/p0.jpg", "", None]), now=START)
    assert [p.url for p in visit.site_photos] == ["https://cdn/p0.jpg"]

    updated = svc.add_photos(visit.visit_id, [f"https://cdn/p{i}.jpg" for i in range(1, 30)], user_id=1, now=END)

    assert len(updated.site_photos) == 20
    assert updated.site_photos[-1].url == "https://cdn/p19.jpg"


def test_quick_update_actions(container):
    svc = container.site_visit_service
    visit = svc.start_visit(2, visit_payload(), now=START)

    with pytest.raises(ValidationError):
        svc.quick_update(visit.visit_id, "reschedule", user_id=2)
    rescheduled = svc.quick_update(visit.visit_id, "reschedule", user_id=2, scheduled_follow_up_date="2025-01-20")
    assert rescheduled.visit_outcome == VisitOutcome.ON_PROCESS
    assert rescheduled.scheduled_follow_up_date == date(2025, 1, 20)
    assert rescheduled.outcome_selected_at is None

    cancelled = svc.quick_update(visit.visit_id, "cancel", user_id=2, reason="Budget on hold", now=END)
    assert cancelled.status == SiteVisitStatus.CANCELLED
    assert cancelled.outcome_notes == "Budget on hold"
    assert cancelled.scheduled_follow_up_date is None

    converted = svc.quick_update(visit.visit_id, "convert", user_id=2, now=END)
    assert converted.customer_current_status == VisitOutcome.CONVERTED
    assert converted.outcome_selected_at == END

    with pytest.raises(ValidationError):
        svc.quick_update(visit.visit_id, "archive", user_id=2)


def test_listing_and_stats(container):
    svc = container.site_visit_service
    svc.start_visit(1, visit_payload(), now=START)
    marketing = svc.start_visit(2, visit_payload(), now=datetime(2025, 1, 7, 10, 0))
    svc.checkout(marketing.visit_id, user_id=2, payload={"site_out_location": OUT, "visit_outcome": "cancelled"})

    assert [v.user_id for v in svc.list_active()] == [1]
    assert [v.user_id for v in svc.list(start=date(2025, 1, 7), end=date(2025, 1, 7))] == [2]
    assert [v.user_id for v in svc.list(visit_outcome="cancelled")] == [2]
    with pytest.raises(ValidationError):
        svc.list(status="paused")

    stats = svc.stats()
    assert stats["total"] == 2
    assert (stats["in_progress"], stats["completed"], stats["cancelled"]) == (1, 0, 1)
    assert stats["by_department"] == {"technical": 1, "marketing": 1, "admin": 0}
    assert stats["by_purpose"] == {"visit": 2}


def test_only_admins_delete(container, repos):
    svc = container.site_visit_service
    visit = svc.start_visit(1, visit_payload(), now=START)

    with pytest.raises(AuthorizationError):
        svc.delete(visit.visit_id, actor_role=Role.HR)

    svc.delete(visit.visit_id, actor_role=Role.ADMIN)
    assert repos.visits.visits == {}
    with pytest.raises(NotFoundError):
        svc.get(visit.visit_id)


def test_only_owner_or_monitor_updates_a_visit(container):
    svc = container.site_visit_service
    visit = svc.start_visit(2, visit_payload(), now=START)

    with pytest.raises(AuthorizationError):
        svc.quick_update(visit.visit_id, "cancel", user_id=1, actor_role=Role.EMPLOYEE, reason="Not mine")
    with pytest.raises(AuthorizationError):
        svc.add_photos(visit.visit_id, ["https://cdn/x.jpg"], user_id=1, actor_role=Role.EMPLOYEE)
    assert svc.get(visit.visit_id).status == SiteVisitStatus.IN_PROGRESS

    updated = svc.add_photos(visit.visit_id, ["https://cdn/hr.jpg"], user_id=4, actor_role=Role.HR, now=END)
    assert [p.url for p in updated.site_photos] == ["https://cdn/hr.jpg"]
    converted = svc.quick_update(visit.visit_id, "convert", user_id=90, actor_role=Role.ADMIN, now=END)
    assert converted.outcome_selected_by == 90


def test_stats_count_auto_closed_visits(container, repos):
    svc = container.site_visit_service
    visit = svc.start_visit(1, visit_payload(), now=START)
    repos.visits.add(replace(visit, status=SiteVisitStatus.AUTO_CLOSED))

    stats = svc.stats()

    assert stats["auto_closed"] == 1
    assert stats["in_progress"] + stats["completed"] + stats["cancelled"] + stats["auto_closed"] == stats["total"]
