from __future__ import annotations

import io
import logging
from typing import Optional

import qrcode
from flask import Flask, jsonify, request, send_file

from ..common.responses import internal_error, json_body, json_error
from ..container import Container
from ..core.exceptions import NotFoundError, TokenError, ValidationError
from .model import User

logger = logging.getLogger(__name__)

# JSON body key -> form field understood by UserService.upsert
_FORM_KEYS = {
    "idNumber": "id_number",
    "firstName": "first_name",
    "lastName": "last_name",
    "email": "email",
    "userType": "user_type",
    "college": "college",
    "department": "department",
    "yearLevel": "year_level",
    "status": "status",
}


def user_summary(user: Optional[User]) -> Optional[dict]:
    if user is None:
        return None
    return {
        "idNumber": user.id_number,
        "fullName": user.full_name,
        "userType": user.user_type.value,
        "college": user.college,
        "department": user.department,
    }


def _profile_json(user: User) -> dict:
    return {
        "idNumber": user.id_number,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "email": user.email,
        "userType": user.user_type.value,
        "college": user.college,
        "department": user.department,
        "yearLevel": user.year_level,
        "status": user.status.value,
        "rfidTag": user.rfid_tag,
    }


def _qr_png(data: str) -> io.BytesIO:
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=8,
        border=2,
    )
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    buf.seek(0)
    return buf


def register(app: Flask, container: Container) -> None:
    @app.route("/users/<identifier>", methods=["GET"], endpoint="user_info")
    def user_info(identifier: str):
        try:
            user = container.user_service.get_public_info(identifier)
        except NotFoundError as e:
            return json_error(str(e), 404)
        except Exception as e:
            return internal_error(logger, "Failed to fetch user info", e)

        return jsonify({
            "success": True,
            "data": {
                "idNumber": user.id_number,
                "fullName": user.full_name,
                "email": user.email,
                "userType": user.user_type.value,
                "college": user.college,
                "department": user.department,
                "yearLevel": user.year_level,
                "status": user.status.value,
            },
        })

    @app.route("/entries/form", methods=["GET"], endpoint="form_by_token")
    @app.route("/entries/form/<token>", methods=["GET"], endpoint="form_by_token_path")
    def form_by_token(token: Optional[str] = None):
        token = request.args.get("token") or token
        try:
            form = container.user_service.get_form_data(token)
        except ValidationError as e:
            return json_error(str(e), 400)
        except NotFoundError as e:
            return json_error(str(e), 404)
        except Exception as e:
            return internal_error(logger, "Failed to fetch user by token", e)

        if form.user is None:
            return jsonify({
                "success": True,
                "message": "No user found for this RFID. Proceed to signup.",
                "data": {"rfidTag": form.rfid_tag},
            })

        return jsonify({"success": True, "data": _profile_json(form.user)})

    @app.route("/entries/form/qr", methods=["GET"], endpoint="form_qr")
    def form_qr():
        """PNG QR code of the form link, shown on the kiosk after a scan."""
        token = request.args.get("token")
        try:
            container.user_service.get_form_data(token)
            return send_file(_qr_png(container.token_bridge.form_url(token)), mimetype="image/png")
        except ValidationError as e:
            return json_error(str(e), 400)
        except NotFoundError as e:
            return json_error(str(e), 404)
        except Exception as e:
            return internal_error(logger, "Failed to render form QR code", e)

    @app.route("/users/upsert", methods=["POST"], endpoint="upsert_user")
    def upsert_user():
        data = json_body()
        form = {field: data.get(key) for key, field in _FORM_KEYS.items()}

        try:
            user = container.user_service.upsert(
                token=data.get("token"),
                rfid_tag=data.get("rfidTag"),
                form=form,
            )
        except (ValidationError, TokenError) as e:
            return json_error(str(e), 400)
        except NotFoundError as e:
            return json_error(str(e), 404)
        except Exception as e:
            return internal_error(logger, "Failed to upsert user", e)

        return jsonify({
            "success": True,
            "message": "User upserted successfully",
            "data": {
                "idNumber": user.id_number,
                "rfidTag": user.rfid_tag,
                "fullName": user.full_name,
                "userId": user.user_id,
            },
        })
