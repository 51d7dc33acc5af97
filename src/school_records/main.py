from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix

from .attendance.controller import register as register_attendance
from .auth.controller import register as register_auth
from .auth.guards import EXTENSION_KEY
from .container import Container, build_container
from .core.error_handlers import register as register_error_handlers
from .core.exceptions import DomainError, ErrorKind
from .core.json_provider import IsoJSONProvider
from .core.logging_config import setup_logging
from .database.bootstrap import apply_schema, ensure_reference_data, list_tables
from .database.connection import DBConfig
from .portal.controller import register as register_portal
from .settings import get_settings_module
from .students.controller import register as register_students

logger = logging.getLogger(__name__)


class SchoolRecordsApp(Flask):
    json_provider_class = IsoJSONProvider


SCHEMA_PATH = Path(__file__).resolve().parents[2] / "database" / "schema.sql"


def create_app(container: Optional[Container] = None) -> Flask:
    """Build the Flask app.

    Pass ``container`` to run against prebuilt services (tests); otherwise the
    MySQL-backed container is built from the active settings module.
    """

    load_dotenv(override=False)
    app = SchoolRecordsApp(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"), getattr(settings, "LOG_DIR", None) or None)

    if not getattr(settings, "JWT_SECRET", ""):
        raise DomainError(ErrorKind.CONFIGURATION, "JWT_SECRET is not configured")

    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["UPLOAD_DIR"] = str(getattr(settings, "UPLOAD_DIR", "uploads"))
    app.config["MAX_CONTENT_LENGTH"] = int(getattr(settings, "MAX_UPLOAD_MB", 5)) * 1024 * 1024

    trusted_proxies = int(getattr(settings, "TRUSTED_PROXIES", 0))
    if trusted_proxies > 0:
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=trusted_proxies)

    logger.info("settings=%s db=%s", settings_module, DBConfig.from_dict(db_config).label())

    if container is None:
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=SCHEMA_PATH)
            logger.info("Schema ready (tables=%s)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            ensure_reference_data(db_config)
            logger.info("Reference roles and permissions ready")
        container = build_container(db_config=db_config, settings=settings)

    app.extensions[EXTENSION_KEY] = container

    register_error_handlers(app)
    register_auth(app, container)
    register_students(app, container)
    register_attendance(app, container)
    register_portal(app, container)

    return app
