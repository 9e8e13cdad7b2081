from __future__ import annotations

import importlib
import os
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .core.constants import DEFAULT_FORM_URL, SIGNUP_TOKEN_TTL_SECONDS
from .core.log import configure_logging
from .database.bootstrap import apply_schema, apply_seed_sql, list_tables

from .container import Container, build_container
from .entries.controller import register as register_entries
from .system.controller import register as register_system
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

DATABASE_DIR = Path(__file__).resolve().parents[3] / "database"


def create_app(container: Optional[Container] = None) -> Flask:
    """Build the Flask app.

    A prebuilt container (e.g. in-memory adapters in tests) skips DB bootstrap
    and the MySQL/Redis wiring.
    """
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["FRONTEND_FORM_URL"] = getattr(settings, "FRONTEND_FORM_URL", DEFAULT_FORM_URL)
    app.config["SIGNUP_TOKEN_TTL_SECONDS"] = int(getattr(settings, "SIGNUP_TOKEN_TTL_SECONDS", SIGNUP_TOKEN_TTL_SECONDS))

    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        redis_config = getattr(settings, "REDIS_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s redis=%s:%s",
            settings_module,
            db_config.get("user"), db_config.get("host"), db_config.get("port", 3306), db_config.get("database"),
            redis_config.get("host"), redis_config.get("port", 6379),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
            logger.info("demo seed ready")

        container = build_container(
            db_config=db_config,
            redis_config=redis_config,
            form_base_url=app.config["FRONTEND_FORM_URL"],
            token_ttl_seconds=app.config["SIGNUP_TOKEN_TTL_SECONDS"],
        )

    app.extensions["rfid_entry.container"] = container

    register_system(app, container)
    register_users(app, container)
    register_entries(app, container)

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(host=os.getenv("HOST", "127.0.0.1"), port=int(os.getenv("PORT", "5000")), debug=app.config["DEBUG"])
