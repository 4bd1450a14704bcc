"""
Issue submission, comments and read views.

Transaction policy: functions use flush(), never commit().

Priority derivation:
    A new issue is High when another unresolved issue (status != Fixed)
    lies within NEARBY_THRESHOLD_DEGREES on both axes (inclusive box),
    otherwise Medium. Low is never derived; an Admin may set it later.

Read views attach display names through batch lookups (see
services.helpers.lookups). Missing reporter/author names render as
"Unknown"; a missing technician name is None.
"""

import logging

from flask import current_app
from sqlalchemy import case, func

from civifix.models import db, utcnow
from civifix.models.issue import (
    ISSUE_CATEGORIES,
    ISSUE_PRIORITIES,
    ISSUE_STATUSES,
    PRIORITY_HIGH,
    PRIORITY_MEDIUM,
    PRIORITY_RANK,
    STATUS_ASSIGNED,
    STATUS_FIXED,
    STATUS_PENDING,
    TITLE_MAX_LENGTH,
    Comment,
    Issue,
)
from civifix.models.profile import ROLE_ADMIN, ROLE_SUPER_ADMIN, ROLE_TECHNICIAN
from civifix.services import profile_service
from civifix.services.helpers.lookups import (
    UNKNOWN_NAME,
    get_or_raise,
    profile_names_by_user,
    technician_names_by_id,
)
from civifix.services.helpers.validation import (
    optional_text,
    require_choice,
    require_coordinate,
    require_text,
)
from civifix.services.issue_lifecycle import get_available_transitions

logger = logging.getLogger(__name__)

DEFAULT_NEARBY_THRESHOLD = 0.001
DEFAULT_PUBLIC_RECENT_LIMIT = 5


# ── Submission ───────────────────────────────────────────────────────────


def has_nearby_unresolved_issue(lat, lng, threshold=None):
    """True if an unresolved issue lies within ``threshold`` degrees on both axes."""
    if threshold is None:
        threshold = current_app.config.get("NEARBY_THRESHOLD_DEGREES", DEFAULT_NEARBY_THRESHOLD)
    match = (
        Issue.query
        .filter(
            Issue.status != STATUS_FIXED,
            Issue.latitude >= lat - threshold,
            Issue.latitude <= lat + threshold,
            Issue.longitude >= lng - threshold,
            Issue.longitude <= lng + threshold,
        )
        .first()
    )
    return match is not None


def create_issue(identity, title, description, category, photo, latitude, longitude):
    """File a new issue for the caller.

    Returns:
        {"issue_id": str, "priority": "High" | "Medium"}
    """
    profile_service.require_identity(identity)
    title = require_text(title, "title", TITLE_MAX_LENGTH)
    description = require_text(description, "description")
    category = require_choice(category, ISSUE_CATEGORIES, "category")
    photo = optional_text(photo, "photo")
    latitude = require_coordinate(latitude, "latitude", 90)
    longitude = require_coordinate(longitude, "longitude", 180)

    priority = PRIORITY_HIGH if has_nearby_unresolved_issue(latitude, longitude) else PRIORITY_MEDIUM

    issue = Issue(
        title=title,
        description=description,
        category=category,
        photo=photo,
        latitude=latitude,
        longitude=longitude,
        status=STATUS_PENDING,
        priority=priority,
        reported_by=identity,
        assigned_to=None,
    )
    now = utcnow()
    issue.created_at = issue.updated_at = now
    db.session.add(issue)
    db.session.flush()

    logger.info(
        "Issue created id=%s category=%s priority=%s by=%s",
        issue.id, category, priority, identity,
    )
    return {"issue_id": issue.id, "priority": priority}


# ── Comments ─────────────────────────────────────────────────────────────


def add_comment(identity, issue_id, message):
    """Append a comment to an existing issue. Any authenticated identity may comment."""
    profile_service.require_identity(identity)
    message = require_text(message, "message")
    issue = get_or_raise(Issue, issue_id, "Issue")

    comment = Comment(issue_id=issue.id, author_user_id=identity, message=message)
    db.session.add(comment)
    db.session.flush()
    return comment.to_dict()


# ── Read views ───────────────────────────────────────────────────────────


def get_my_issues(identity):
    """Issues reported by the caller, newest first."""
    profile_service.require_identity(identity)
    issues = (
        Issue.query
        .filter_by(reported_by=identity)
        .order_by(Issue.created_at.desc())
        .all()
    )
    return [i.to_dict() for i in issues]


def get_assigned_issues(identity):
    """The caller's work queue: High before Medium before Low, then newest first."""
    profile = profile_service.require_role(identity, (ROLE_TECHNICIAN,))
    tech = profile_service.technician_for(profile)

    issues = (
        Issue.query
        .filter_by(assigned_to=tech.id)
        .order_by(
            case(PRIORITY_RANK, value=Issue.priority, else_=0).desc(),
            Issue.created_at.desc(),
        )
        .all()
    )

    names = profile_names_by_user(i.reported_by for i in issues)
    result = []
    for issue in issues:
        d = issue.to_dict()
        d["reporter_name"] = names.get(issue.reported_by, UNKNOWN_NAME)
        result.append(d)
    return result


def get_all_issues(identity, status=None, category=None, priority=None):
    """Every issue, newest first, with reporter and technician names.

    Restricted to approved Admins and SuperAdmins. Optional filters narrow
    the listing; each must be a member of its vocabulary.
    """
    profile_service.require_approved_admin(identity, (ROLE_ADMIN, ROLE_SUPER_ADMIN))

    q = Issue.query
    if status:
        q = q.filter_by(status=require_choice(status, ISSUE_STATUSES, "status"))
    if category:
        q = q.filter_by(category=require_choice(category, ISSUE_CATEGORIES, "category"))
    if priority:
        q = q.filter_by(priority=require_choice(priority, ISSUE_PRIORITIES, "priority"))
    issues = q.order_by(Issue.created_at.desc()).all()

    reporter_names = profile_names_by_user(i.reported_by for i in issues)
    tech_names = technician_names_by_id(i.assigned_to for i in issues)

    result = []
    for issue in issues:
        d = issue.to_dict()
        d["reporter_name"] = reporter_names.get(issue.reported_by, UNKNOWN_NAME)
        d["technician_name"] = tech_names.get(issue.assigned_to)
        result.append(d)
    return result


def get_map_issues(identity):
    profile_service.require_identity(identity)
    return [i.to_map_dict() for i in Issue.query.all()]


def get_issue(identity, issue_id):
    """Full issue detail with names, comment thread (oldest first) and next statuses.

    Any authenticated identity may read any issue.
    """
    profile_service.require_identity(identity)
    issue = get_or_raise(Issue, issue_id, "Issue")

    comments = (
        Comment.query
        .filter_by(issue_id=issue.id)
        .order_by(Comment.created_at.asc())
        .all()
    )
    names = profile_names_by_user([issue.reported_by] + [c.author_user_id for c in comments])
    tech_names = technician_names_by_id([issue.assigned_to])

    result = issue.to_dict()
    result["reporter_name"] = names.get(issue.reported_by, UNKNOWN_NAME)
    result["technician_name"] = tech_names.get(issue.assigned_to)
    result["comments"] = [
        {**c.to_dict(), "author_name": names.get(c.author_user_id, UNKNOWN_NAME)}
        for c in comments
    ]
    result["available_transitions"] = get_available_transitions(issue)
    return result


# ── Stats ────────────────────────────────────────────────────────────────


def _status_counts():
    rows = db.session.query(Issue.status, func.count(Issue.id)).group_by(Issue.status).all()
    counts = dict(rows)
    return {
        "total": sum(counts.values()),
        "pending": counts.get(STATUS_PENDING, 0),
        "assigned": counts.get(STATUS_ASSIGNED, 0),
        "fixed": counts.get(STATUS_FIXED, 0),
    }


def _category_counts():
    rows = db.session.query(Issue.category, func.count(Issue.id)).group_by(Issue.category).all()
    counts = dict(rows)
    return {c: counts.get(c, 0) for c in ISSUE_CATEGORIES}


def get_public_stats():
    """Unauthenticated landing-page numbers. Recent items carry no reporter or location."""
    limit = current_app.config.get("PUBLIC_RECENT_LIMIT", DEFAULT_PUBLIC_RECENT_LIMIT)
    recent = Issue.query.order_by(Issue.created_at.desc()).limit(limit).all()
    return {
        **_status_counts(),
        "by_category": _category_counts(),
        "recent_issues": [i.to_public_dict() for i in recent],
    }


def get_dashboard_stats(identity):
    profile_service.require_approved_admin(identity, (ROLE_ADMIN, ROLE_SUPER_ADMIN))
    high_priority = (
        Issue.query
        .filter(Issue.priority == PRIORITY_HIGH, Issue.status != STATUS_FIXED)
        .count()
    )
    return {
        **_status_counts(),
        "high_priority": high_priority,
        "by_category": _category_counts(),
    }
