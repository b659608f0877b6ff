import threading
from types import SimpleNamespace

from ops_portal.scheduler import JOB_OT_AUTO_CLOSE, start_scheduler


def _container(on_ot_close):
    return SimpleNamespace(
        auto_checkout_service=SimpleNamespace(process=lambda: 0),
        ot_auto_close=SimpleNamespace(process=on_ot_close),
        site_visit_auto_close=SimpleNamespace(process=lambda: 0),
    )


def test_startup_ot_pass_runs_in_a_far_timezone():
    fired = threading.Event()

    def close_sessions():
        fired.set()
        return 0

    # UTC+14, ahead of any host clock
    scheduler = start_scheduler(_container(close_sessions), timezone="Pacific/Kiritimati")
    try:
        assert fired.wait(timeout=10)
    finally:
        scheduler.shutdown(wait=False)


def test_jobs_are_registered():
    scheduler = start_scheduler(_container(lambda: 0), timezone="Asia/Kolkata")
    try:
        ids = {job.id for job in scheduler.get_jobs()}
    finally:
        scheduler.shutdown(wait=False)

    assert {"attendance_auto_checkout", JOB_OT_AUTO_CLOSE, "site_visit_auto_close"} <= ids
