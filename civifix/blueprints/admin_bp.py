"""
Admin approval blueprint (SuperAdmin only).

    GET  /api/v1/admins
    GET  /api/v1/admins/pending
    GET  /api/v1/admins/stats
    POST /api/v1/admins/<profile_id>/approve
    POST /api/v1/admins/<profile_id>/reject
    POST /api/v1/admins/<profile_id>/revoke
"""

from flask import Blueprint, jsonify

from civifix.middleware.jwt_auth import current_identity
from civifix.services import profile_service
from civifix.utils.helpers import db_commit_or_error

admin_bp = Blueprint("admin", __name__, url_prefix="/api/v1/admins")

_ACTIONS = {
    "approve": profile_service.approve_admin,
    "reject": profile_service.reject_admin,
    "revoke": profile_service.revoke_admin,
}


@admin_bp.route("", methods=["GET"])
def list_admins():
    return jsonify(profile_service.list_admins(current_identity())), 200


@admin_bp.route("/pending", methods=["GET"])
def pending_admins():
    return jsonify(profile_service.list_pending_admins(current_identity())), 200


@admin_bp.route("/stats", methods=["GET"])
def stats():
    return jsonify(profile_service.get_super_admin_stats(current_identity())), 200


@admin_bp.route("/<profile_id>/<action>", methods=["POST"])
def change_status(profile_id, action):
    handler = _ACTIONS.get(action)
    if handler is None:
        return jsonify({"error": "Not found"}), 404
    admin = handler(current_identity(), profile_id)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify({"success": True, "admin": admin}), 200
