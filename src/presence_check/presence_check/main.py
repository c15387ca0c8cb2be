from __future__ import annotations

import importlib
import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .classes.controller import register as register_classes
from .container import Container, build_container
from .core.exceptions import (
    AuthorizationError,
    DataIntegrityError,
    DomainError,
    DuplicateCode,
    GeofenceViolation,
    NotFound,
    SlotExpired,
    TransientError,
)
from .database.bootstrap import apply_schema, list_tables, missing_tables
from .enrollment.controller import register as register_enrollment
from .slots.controller import register as register_slots

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(app: Flask, settings) -> None:
    level = getattr(logging, str(getattr(settings, "LOG_LEVEL", "INFO")).upper(), logging.INFO)
    package_logger = logging.getLogger(__package__)
    package_logger.setLevel(level)

    log_file = getattr(settings, "LOG_FILE", None)
    if log_file and not app.debug and not app.testing:
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
        handler: logging.Handler = logging.FileHandler(log_file)
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.setLevel(level)

    if not package_logger.handlers:
        package_logger.addHandler(handler)
    app.logger.setLevel(level)


def _status_for(error: DomainError) -> int:
    if isinstance(error, NotFound):
        return 404
    if isinstance(error, AuthorizationError):
        return 403
    if isinstance(error, DuplicateCode):
        return 409
    if isinstance(error, SlotExpired):
        return 410
    if isinstance(error, GeofenceViolation):
        return 422
    return 400


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(error: DomainError):
        body = {"success": False, "error": type(error).__name__, "message": str(error)}
        if isinstance(error, GeofenceViolation):
            body["distance"] = round(error.distance)
            body["radius"] = error.radius
        if isinstance(error, DataIntegrityError):
            app.logger.error("data integrity error: %s", error)
        return jsonify(body), _status_for(error)

    @app.errorhandler(TransientError)
    def handle_transient_error(error: TransientError):
        app.logger.warning("transient failure: %s: %s", type(error).__name__, error)
        body = {"success": False, "error": type(error).__name__, "message": str(error), "retryable": True}
        return jsonify(body), 503


def create_app(*, container: Optional[Container] = None, settings_module: Optional[str] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    setup_logging(app, settings)
    app.logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if container is None:
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
            apply_schema(db_config, schema_path=schema_path)
            missing = missing_tables(list_tables(db_config))
            if missing:
                app.logger.warning("schema incomplete, missing tables: %s", ", ".join(missing))
        container = build_container(db_config=db_config, settings=settings)

    register_error_handlers(app)
    register_classes(app, container)
    register_slots(app, container)
    register_enrollment(app, container)
    register_attendance(app, container)

    return app
