from __future__ import annotations

import logging

from flask import Flask, jsonify

from ..common.datetime_utils import to_iso
from ..common.responses import internal_error, json_body, json_error
from ..common.validators import scalar_str
from ..container import Container
from ..core.enums import ScanOutcome
from ..core.exceptions import NotFoundError, ValidationError
from ..users.controller import user_summary
from .model import EntryLog, EntryWithUser

logger = logging.getLogger(__name__)


def entry_json(entry: EntryLog) -> dict:
    return {
        "logId": entry.log_id,
        "entryTimestamp": to_iso(entry.entry_timestamp),
        "entryMethod": entry.entry_method.value,
        "status": entry.status.value,
    }


def _monitor_row(row: EntryWithUser) -> dict:
    return {
        "logId": row.log_id,
        "entryTimestamp": to_iso(row.entry_timestamp),
        "entryMethod": row.entry_method.value,
        "status": row.status.value,
        "user": {
            "userId": row.user_id,
            "idNumber": row.id_number,
            "fullName": row.full_name,
            "userType": row.user_type.value,
            "college": row.college,
            "department": row.department,
        },
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/entries/scan", methods=["POST"], endpoint="scan_entry")
    def scan_entry():
        rfid_tag = scalar_str(json_body().get("rfidTag"))

        try:
            result = container.scan_service.scan(rfid_tag)
        except ValidationError as e:
            return json_error(str(e), 400)
        except Exception as e:
            return internal_error(logger, "Failed to process scan", e, f"rfid {rfid_tag or 'unknown'}")

        if result.outcome == ScanOutcome.NOT_FOUND:
            return jsonify({
                "success": True,
                "message": "RFID not registered. Complete signup via form.",
                "status": "signup",
                "token": result.token,
                "formUrl": result.form_url,
                "data": {"rfidTag": result.rfid_tag},
            }), 200

        if result.outcome == ScanOutcome.INACTIVE:
            # Same answer as an invalid tag: do not reveal that the account exists.
            return json_error("User not found or inactive", 404)

        if result.outcome == ScanOutcome.DUPLICATE:
            response = jsonify({
                "success": False,
                "message": "Duplicate entry detected",
                "status": "duplicate",
                "data": {
                    "user": user_summary(result.user),
                    "lastEntry": to_iso(result.last_entry_at),
                    "waitTime": result.wait_time,
                    "retryAfter": result.retry_after,
                    "token": result.token,
                    "formUrl": result.form_url,
                },
            })
            if result.retry_after is not None:
                response.headers["Retry-After"] = str(result.retry_after)
            return response, 409

        return jsonify({
            "success": True,
            "message": "Entry recorded successfully",
            "data": {
                "entry": entry_json(result.entry),
                "user": user_summary(result.user),
                "token": result.token,
                "formUrl": result.form_url,
            },
        }), 200

    @app.route("/entries/manual", methods=["POST"], endpoint="manual_entry")
    def manual_entry():
        id_number = scalar_str(json_body().get("idNumber"))

        try:
            entry, user = container.entry_service.record_manual(id_number)
        except ValidationError as e:
            return json_error(str(e), 400)
        except NotFoundError as e:
            return json_error(str(e), 404)
        except Exception as e:
            return internal_error(logger, "Failed to process manual entry", e)

        logger.info("Manual entry recorded for user %s", user.id_number)
        return jsonify({
            "success": True,
            "message": "Manual entry recorded successfully",
            "data": {"entry": entry_json(entry), "user": user_summary(user)},
        })

    @app.route("/entries/active", methods=["GET"], endpoint="active_entries")
    def active_entries():
        try:
            active = container.entry_service.get_active()
        except Exception as e:
            return internal_error(logger, "Failed to fetch active entries", e)

        return jsonify({
            "success": True,
            "data": {
                "entries": [_monitor_row(r) for r in active.entries],
                "stats": {
                    "totalToday": active.total_today,
                    "students": active.students,
                    "faculty": active.faculty,
                    "lastHour": active.last_hour,
                },
            },
        })
