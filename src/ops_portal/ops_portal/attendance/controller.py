from __future__ import annotations

import csv
import io
from datetime import timedelta

from flask import Flask, request

from ..common.datetime_utils import now_local, parse_iso_datetime
from ..common.web import (
    current_role,
    current_user_id,
    json_body,
    login_required,
    ok,
    query_date,
    query_department,
    roles_required,
)
from ..core.constants import DEFAULT_HISTORY_LIMIT, DEFAULT_REPORT_DAYS
from ..core.enums import Role
from ..core.exceptions import AuthorizationError
from ..container import Container

REPORT_VIEWERS = (Role.MASTER_ADMIN, Role.ADMIN, Role.HR)
REVIEWERS = (Role.MASTER_ADMIN, Role.ADMIN)

REPORT_CSV_FIELDS = [
    "work_date",
    "user_id",
    "full_name",
    "username",
    "department",
    "check_in",
    "check_out",
    "status",
    "worked_hours",
    "ot_hours",
    "review",
    "note",
]


def register(app: Flask, container: Container) -> None:
    def _report_range():
        today = now_local().date()
        end = query_date("end") or today
        start = query_date("start") or end - timedelta(days=DEFAULT_REPORT_DAYS)
        return start, end

    def _report_scope():
        """Employees only see themselves; report viewers may filter."""

        if current_role() in REPORT_VIEWERS:
            user_id = request.args.get("user_id", type=int)
            return user_id, query_department()
        if request.args.get("user_id", type=int) not in (None, current_user_id()):
            raise AuthorizationError("You can only view your own attendance")
        return current_user_id(), None

    def _write_report_csv(*, rows, filename: str):
        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=REPORT_CSV_FIELDS, extrasaction="ignore")
        writer.writeheader()
        for row in rows:
            writer.writerow(row)

        csv_bytes = out.getvalue().encode("utf-8-sig")
        return app.response_class(
            csv_bytes,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.post("/api/attendance/check-in", endpoint="attendance_check_in")
    @login_required
    def check_in():
        body = json_body()
        record = container.attendance_service.check_in(
            current_user_id(),
            location=body.get("location"),
            photo_url=body.get("photo_url"),
            attendance_type=body.get("attendance_type") or "office",
        )
        return ok(record, message="Checked in successfully", status=201)

    @app.post("/api/attendance/check-out", endpoint="attendance_check_out")
    @login_required
    def check_out():
        body = json_body()
        record = container.attendance_service.check_out(
            current_user_id(),
            location=body.get("location"),
            photo_url=body.get("photo_url"),
        )
        return ok(record, message="Checked out successfully")

    @app.get("/api/attendance/today", endpoint="attendance_today")
    @login_required
    def today():
        return ok(container.attendance_service.get_today(current_user_id()))

    @app.get("/api/attendance/history", endpoint="attendance_history")
    @login_required
    def history():
        limit = request.args.get("limit", default=DEFAULT_HISTORY_LIMIT, type=int)
        return ok(container.attendance_service.get_history(current_user_id(), limit=limit))

    @app.get("/api/attendance/report", endpoint="attendance_report")
    @login_required
    def report():
        start, end = _report_range()
        user_id, department = _report_scope()
        data = container.attendance_service.get_report(start=start, end=end, user_id=user_id, department=department)
        return ok({"rows": data.rows, "summary": data.summary, "start": start, "end": end})

    @app.get("/api/attendance/report.csv", endpoint="attendance_report_csv")
    @login_required
    def report_csv():
        start, end = _report_range()
        user_id, department = _report_scope()
        data = container.attendance_service.get_report(start=start, end=end, user_id=user_id, department=department)
        filename = f"attendance_{start.strftime('%Y%m%d')}_{end.strftime('%Y%m%d')}.csv"
        return _write_report_csv(rows=data.rows, filename=filename)

    @app.get("/api/admin/attendance/reviews", endpoint="attendance_pending_reviews")
    @roles_required(*REVIEWERS)
    def pending_reviews():
        return ok(container.attendance_review_service.list_pending_reviews())

    @app.post("/api/admin/attendance/<int:attendance_id>/review", endpoint="attendance_review")
    @roles_required(*REVIEWERS)
    def review(attendance_id: int):
        body = json_body()
        record = container.attendance_review_service.review(
            attendance_id=attendance_id,
            action=body.get("action", ""),
            admin_id=current_user_id(),
            adjusted_checkout=parse_iso_datetime(body.get("adjusted_checkout")),
            notes=body.get("notes"),
        )
        return ok(record, message="Attendance reviewed")

    @app.post("/api/admin/attendance/auto-checkout/run", endpoint="attendance_auto_checkout_run")
    @roles_required(Role.MASTER_ADMIN)
    def run_auto_checkout():
        return ok(container.auto_checkout_service.process(), message="Auto-checkout completed")
