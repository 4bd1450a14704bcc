"""
Public blueprint — unauthenticated landing-page data.

    GET /api/v1/public/stats
"""

from flask import Blueprint, jsonify

from civifix.services import issue_service

public_bp = Blueprint("public", __name__, url_prefix="/api/v1")


@public_bp.route("/public/stats", methods=["GET"])
def public_stats():
    return jsonify(issue_service.get_public_stats()), 200
