"""
Issue blueprint — submission, read views, triage and completion.

Endpoint groups:
  Citizen        POST /issues, GET /issues/mine, POST /issues/<id>/comments
  Shared reads   GET  /issues/map, GET /issues/<id>
  Technician     GET  /issues/assigned, POST /issues/<id>/fix
  Admin          GET  /issues, GET /technicians, GET /dashboard/stats,
                 POST /issues/<id>/assign, PATCH /issues/<id>/status,
                 PATCH /issues/<id>/priority, DELETE /issues/<id>
"""

from flask import Blueprint, jsonify

from civifix.blueprints import query_arg
from civifix.middleware.jwt_auth import current_identity
from civifix.services import issue_lifecycle, issue_service, profile_service
from civifix.utils.helpers import db_commit_or_error, json_body

issue_bp = Blueprint("issue", __name__, url_prefix="/api/v1")


# ═════════════════════════════════════════════════════════════════════════
# Submission & comments
# ═════════════════════════════════════════════════════════════════════════


@issue_bp.route("/issues", methods=["POST"])
def create_issue():
    data = json_body()
    result = issue_service.create_issue(
        current_identity(),
        title=data.get("title"),
        description=data.get("description"),
        category=data.get("category"),
        photo=data.get("photo"),
        latitude=data.get("latitude"),
        longitude=data.get("longitude"),
    )
    err = db_commit_or_error()
    if err:
        return err
    return jsonify({"success": True, **result}), 201


@issue_bp.route("/issues/<issue_id>/comments", methods=["POST"])
def add_comment(issue_id):
    data = json_body()
    comment = issue_service.add_comment(current_identity(), issue_id, data.get("message"))
    err = db_commit_or_error()
    if err:
        return err
    return jsonify({"success": True, "comment": comment}), 201


# ═════════════════════════════════════════════════════════════════════════
# Read views
# ═════════════════════════════════════════════════════════════════════════


@issue_bp.route("/issues/mine", methods=["GET"])
def my_issues():
    return jsonify(issue_service.get_my_issues(current_identity())), 200


@issue_bp.route("/issues/assigned", methods=["GET"])
def assigned_issues():
    return jsonify(issue_service.get_assigned_issues(current_identity())), 200


@issue_bp.route("/issues", methods=["GET"])
def all_issues():
    """All issues (approved Admin / SuperAdmin). Filters: ?status=&category=&priority="""
    issues = issue_service.get_all_issues(
        current_identity(),
        status=query_arg("status"),
        category=query_arg("category"),
        priority=query_arg("priority"),
    )
    return jsonify(issues), 200


@issue_bp.route("/issues/map", methods=["GET"])
def map_issues():
    return jsonify(issue_service.get_map_issues(current_identity())), 200


@issue_bp.route("/issues/<issue_id>", methods=["GET"])
def get_issue(issue_id):
    return jsonify(issue_service.get_issue(current_identity(), issue_id)), 200


@issue_bp.route("/technicians", methods=["GET"])
def technicians():
    return jsonify(profile_service.list_technicians(current_identity())), 200


@issue_bp.route("/dashboard/stats", methods=["GET"])
def dashboard_stats():
    return jsonify(issue_service.get_dashboard_stats(current_identity())), 200


# ═════════════════════════════════════════════════════════════════════════
# Lifecycle
# ═════════════════════════════════════════════════════════════════════════


@issue_bp.route("/issues/<issue_id>/assign", methods=["POST"])
def assign_technician(issue_id):
    data = json_body()
    result = issue_lifecycle.assign_technician(
        current_identity(), issue_id, data.get("technician_id"),
    )
    err = db_commit_or_error()
    if err:
        return err
    return jsonify({"success": True, **result}), 200


@issue_bp.route("/issues/<issue_id>/status", methods=["PATCH"])
def update_status(issue_id):
    data = json_body()
    result = issue_lifecycle.update_issue_status(current_identity(), issue_id, data.get("status"))
    err = db_commit_or_error()
    if err:
        return err
    return jsonify({"success": True, **result}), 200


@issue_bp.route("/issues/<issue_id>/priority", methods=["PATCH"])
def update_priority(issue_id):
    data = json_body()
    result = issue_lifecycle.update_issue_priority(
        current_identity(), issue_id, data.get("priority"),
    )
    err = db_commit_or_error()
    if err:
        return err
    return jsonify({"success": True, **result}), 200


@issue_bp.route("/issues/<issue_id>/fix", methods=["POST"])
def mark_fixed(issue_id):
    data = json_body()
    result = issue_lifecycle.mark_issue_fixed(
        current_identity(), issue_id, proof_photo=data.get("proof_photo"),
    )
    err = db_commit_or_error()
    if err:
        return err
    return jsonify({"success": True, **result}), 200


@issue_bp.route("/issues/<issue_id>", methods=["DELETE"])
def delete_issue(issue_id):
    result = issue_lifecycle.delete_issue(current_identity(), issue_id)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify({"success": True, **result}), 200
