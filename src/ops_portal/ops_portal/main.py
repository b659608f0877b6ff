from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from config import get_settings_module

from .activity.controller import register as register_activity
from .attendance.controller import register as register_attendance
from .company.controller import register as register_company
from .container import Container, build_container
from .core.exceptions import DomainError
from .customers.controller import register as register_customers
from .database.bootstrap import apply_schema, ensure_master_admin, list_tables
from .departments.controller import register as register_departments
from .leaves.controller import register as register_leaves
from .logging_setup import configure_logging
from .overtime.controller import register as register_overtime
from .quotations.controller import register as register_quotations
from .scheduler import start_scheduler
from .site_visits.controller import register as register_site_visits
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"

CONTROLLERS = (
    register_users,
    register_departments,
    register_company,
    register_leaves,
    register_attendance,
    register_overtime,
    register_customers,
    register_site_visits,
    register_quotations,
    register_activity,
)


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def domain_error(exc: DomainError):
        return jsonify({"success": False, "message": str(exc)}), exc.status_code

    @app.errorhandler(HTTPException)
    def http_error(exc: HTTPException):
        return jsonify({"success": False, "message": exc.description}), exc.code

    @app.errorhandler(Exception)
    def unexpected_error(exc: Exception):
        logger.exception("Unhandled error")
        return jsonify({"success": False, "message": "Internal server error"}), 500


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app = Flask(__name__)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )
        if getattr(settings, "AUTO_INIT_DB", False):
            apply_schema(db_config, schema_path=SCHEMA_PATH)
            logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))
            admin_password = getattr(settings, "MASTER_ADMIN_PASSWORD", None)
            if admin_password:
                ensure_master_admin(
                    db_config,
                    username=getattr(settings, "MASTER_ADMIN_USERNAME", "admin"),
                    password=admin_password,
                )
        container = build_container(db_config=db_config, settings=settings)

    app.extensions["ops_portal.container"] = container

    for register in CONTROLLERS:
        register(app, container)
    _register_error_handlers(app)

    if getattr(settings, "ENABLE_SCHEDULER", False) and not app.config["TESTING"]:
        app.extensions["ops_portal.scheduler"] = start_scheduler(
            container, timezone=getattr(settings, "SCHEDULER_TIMEZONE", None)
        )

    return app
