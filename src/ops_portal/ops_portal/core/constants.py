"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_HISTORY_LIMIT = 30
DEFAULT_LATE_GRACE_MINUTES = 5
DEFAULT_AUTO_CHECKOUT_GRACE_MINUTES = 5
DEFAULT_REPORT_DAYS = 30

DEFAULT_WEEKEND_DAYS = (6,)  # date.weekday(): Sunday
DEFAULT_OT_RATE = 1.0
DEFAULT_MAX_OT_HOURS_PER_DAY = 5.0
OT_AUTO_CLOSE_HOURS = 5

MAX_SITE_PHOTOS = 20
MAX_FOLLOW_UP_PHOTOS = 10
SITE_VISIT_AUTO_CLOSE_HOURS = 24
MIN_FOLLOW_UP_DESCRIPTION = 10

DEFAULT_GST_PERCENT = 18.0
