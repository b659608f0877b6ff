import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "ops_portal_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False
MASTER_ADMIN_USERNAME = "admin"
MASTER_ADMIN_PASSWORD = None

ENABLE_SCHEDULER = False
SCHEDULER_TIMEZONE = None

LATE_GRACE_MINUTES = 5
OT_AUTO_CLOSE_HOURS = 5
SITE_VISIT_AUTO_CLOSE_HOURS = 24
GST_PERCENT = 18
