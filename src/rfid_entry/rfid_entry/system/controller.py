from __future__ import annotations

import logging

from flask import Flask, jsonify

from ..common.datetime_utils import now_utc, to_iso
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/health", methods=["GET"], endpoint="health")
    def health():
        database = "ok"
        if container.conn is not None:
            try:
                container.conn.ping()
            except Exception as e:
                logger.warning("Database health check failed: %s", e)
                database = "unavailable"

        redis_status = "ok" if container.token_store.ping() else "unavailable"
        healthy = database == "ok" and redis_status == "ok"

        return jsonify({
            "status": "ok" if healthy else "degraded",
            "timestamp": to_iso(now_utc()),
            "database": database,
            "redis": redis_status,
        }), (200 if healthy else 503)
