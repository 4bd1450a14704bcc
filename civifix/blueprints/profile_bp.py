"""
Profile blueprint — caller profile and technician self-service.

    GET   /api/v1/profile/me
    POST  /api/v1/profile
    PATCH /api/v1/technician/availability
    PATCH /api/v1/technician/specialty
"""

from flask import Blueprint, jsonify

from civifix.middleware.jwt_auth import current_identity
from civifix.services import profile_service
from civifix.utils.helpers import db_commit_or_error, json_body

profile_bp = Blueprint("profile", __name__, url_prefix="/api/v1")


@profile_bp.route("/profile/me", methods=["GET"])
def get_my_profile():
    """The caller's profile, or ``null`` when anonymous or not yet created."""
    return jsonify({"profile": profile_service.get_profile(current_identity())}), 200


@profile_bp.route("/profile", methods=["POST"])
def create_profile():
    data = json_body()
    profile = profile_service.create_or_update_profile(
        current_identity(),
        full_name=data.get("full_name"),
        phone=data.get("phone"),
        role=data.get("role"),
    )
    err = db_commit_or_error()
    if err:
        return err
    return jsonify({"success": True, "profile": profile}), 200


@profile_bp.route("/technician/availability", methods=["PATCH"])
def update_availability():
    data = json_body()
    tech = profile_service.update_technician_availability(current_identity(), data.get("available"))
    err = db_commit_or_error()
    if err:
        return err
    return jsonify({"success": True, "technician": tech}), 200


@profile_bp.route("/technician/specialty", methods=["PATCH"])
def update_specialty():
    data = json_body()
    tech = profile_service.update_technician_specialty(current_identity(), data.get("specialty"))
    err = db_commit_or_error()
    if err:
        return err
    return jsonify({"success": True, "technician": tech}), 200
