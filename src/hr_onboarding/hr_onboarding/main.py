from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .audit.controller import register as register_audit
from .common.http import register_error_handlers
from .container import build_container
from .core.constants import DEFAULT_AUDIT_RETRY_ATTEMPTS, DEFAULT_AUDIT_RETRY_BACKOFF_SECONDS
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_employees, list_tables
from .employees.controller import register as register_employees
from .notifications.controller import register as register_notifications
from .onboarding.controller import register as register_onboarding
from .support.controller import register as register_support

logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[3]


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
        logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))
    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
        ensure_demo_employees(db_config)
        logger.info("Demo seed ready")

    container = build_container(
        db_config=db_config,
        upload_dir=getattr(settings, "UPLOAD_DIR", "uploads"),
        upload_base_url=getattr(settings, "UPLOAD_BASE_URL", "/uploads"),
        audit_retry_attempts=int(getattr(settings, "AUDIT_RETRY_ATTEMPTS", DEFAULT_AUDIT_RETRY_ATTEMPTS)),
        audit_retry_backoff_seconds=float(
            getattr(settings, "AUDIT_RETRY_BACKOFF_SECONDS", DEFAULT_AUDIT_RETRY_BACKOFF_SECONDS)
        ),
    )
    app.extensions["hr_onboarding"] = container

    register_error_handlers(app)
    register_employees(app, container)
    register_onboarding(app, container)
    register_audit(app, container)
    register_notifications(app, container)
    register_support(app, container)

    @app.route("/health", methods=["GET"], endpoint="health")
    def health():
        return jsonify({"status": "ok"})

    return app
