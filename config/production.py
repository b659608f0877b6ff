import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "ops_portal"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
MASTER_ADMIN_USERNAME = os.getenv("MASTER_ADMIN_USERNAME", "admin")
# No default: the master admin is only seeded when a password is provided
MASTER_ADMIN_PASSWORD = os.getenv("MASTER_ADMIN_PASSWORD")

ENABLE_SCHEDULER = bool(int(os.getenv("ENABLE_SCHEDULER", "1")))
SCHEDULER_TIMEZONE = os.getenv("SCHEDULER_TIMEZONE", "Asia/Kolkata")

LATE_GRACE_MINUTES = int(os.getenv("LATE_GRACE_MINUTES", "5"))
OT_AUTO_CLOSE_HOURS = float(os.getenv("OT_AUTO_CLOSE_HOURS", "5"))
SITE_VISIT_AUTO_CLOSE_HOURS = float(os.getenv("SITE_VISIT_AUTO_CLOSE_HOURS", "24"))
GST_PERCENT = float(os.getenv("GST_PERCENT", "18"))
