from __future__ import annotations

import logging
from typing import Optional

from flask import current_app, jsonify, request


def json_error(message: str, status: int, *, exc: Optional[BaseException] = None):
    """Uniform error envelope {success, message, error?}; `error` is only exposed in DEBUG."""
    body = {"success": False, "message": message}
    if exc is not None and bool(current_app.config.get("DEBUG", False)):
        body["error"] = str(exc)
    return jsonify(body), status


def internal_error(logger: logging.Logger, message: str, exc: BaseException, context: str = ""):
    logger.exception("%s%s", message, f" ({context})" if context else "")
    return json_error(message, 500, exc=exc)


def json_body() -> dict:
    """Request JSON object, or {} when the body is missing, malformed or not an object."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}
