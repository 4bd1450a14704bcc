"""
Issue Lifecycle Service

Guarded status transitions for issues plus the Admin triage operations
that drive them:

    Pending  -> Assigned                    assign_technician
    Assigned -> Assigned                    assign_technician (re-assignment)
    Assigned -> Fixed                       mark_issue_fixed (assignee) / update_issue_status
    Assigned -> Pending                     update_issue_status (clears assigned_to)
    Fixed    -> Pending                     update_issue_status (reopen, clears assigned_to)
    Fixed    -> Assigned                    update_issue_status / assign_technician
                                            (reopen to the current assignee only)

Any other move raises InvalidTransitionError. Priority changes and deletion
are independent of status.

Transaction policy: functions use flush(), never commit().

Usage:
    from civifix.services.issue_lifecycle import assign_technician

    result = assign_technician(identity="admin-1", issue_id=issue_id, technician_id=tech_id)
"""

import logging

from civifix.core.exceptions import AuthorizationError, InvalidTransitionError
from civifix.models import db, utcnow
from civifix.models.issue import (
    FIXED_WITH_PROOF_MESSAGE,
    ISSUE_PRIORITIES,
    ISSUE_STATUSES,
    ISSUE_TRANSITIONS,
    STATUS_ASSIGNED,
    STATUS_FIXED,
    STATUS_PENDING,
    Comment,
    Issue,
    validate_issue_transition,
)
from civifix.models.profile import ROLE_ADMIN, ROLE_SUPER_ADMIN, ROLE_TECHNICIAN, Technician
from civifix.services import profile_service
from civifix.services.helpers.lookups import get_or_raise
from civifix.services.helpers.validation import optional_text, require_choice, require_id

logger = logging.getLogger(__name__)


def get_available_transitions(issue: Issue) -> list[str]:
    """Statuses reachable from the issue's current status."""
    return list(ISSUE_TRANSITIONS.get(issue.status, []))


def _apply_transition(issue: Issue, target: str, assignee: str | None = None) -> str:
    """Move ``issue`` to ``target`` or raise InvalidTransitionError.

    ``assignee`` is the technician id for a move into Assigned. Returns
    the previous status.
    """
    current = issue.status
    if not validate_issue_transition(current, target):
        raise InvalidTransitionError(issue.id, current, target)

    if target == STATUS_ASSIGNED:
        if current == STATUS_PENDING and not assignee:
            raise InvalidTransitionError(issue.id, current, target, "an assignee is required")
        if current == STATUS_ASSIGNED and not assignee:
            raise InvalidTransitionError(issue.id, current, target, "issue is already assigned")
        if current == STATUS_FIXED:
            if not issue.assigned_to:
                raise InvalidTransitionError(issue.id, current, target, "issue has no assignee")
            if assignee and assignee != issue.assigned_to:
                raise InvalidTransitionError(
                    issue.id, current, target, "a fixed issue can only be reopened to its assignee",
                )
        if assignee:
            issue.assigned_to = assignee
    elif target == STATUS_PENDING:
        issue.assigned_to = None

    issue.status = target
    issue.updated_at = utcnow()
    return current


# ── Admin triage ─────────────────────────────────────────────────────────


def assign_technician(identity, issue_id, technician_id):
    """Assign (or re-assign) an issue to a technician. Admin only.

    Technician availability is not enforced; assigning an unavailable
    technician and overwriting an existing assignee are both logged.
    """
    admin = profile_service.require_admin_mutation(identity)
    technician_id = require_id(technician_id, "technician_id")
    issue = get_or_raise(Issue, issue_id, "Issue")
    tech = get_or_raise(Technician, technician_id, "Technician")

    if not tech.available:
        logger.warning("Assigning unavailable technician %s to issue %s", tech.id, issue.id)
    if issue.assigned_to and issue.assigned_to != tech.id:
        logger.warning(
            "Issue %s re-assigned from %s to %s", issue.id, issue.assigned_to, tech.id,
        )

    previous = _apply_transition(issue, STATUS_ASSIGNED, assignee=tech.id)
    db.session.flush()
    logger.info(
        "Issue %s assigned to %s (%s -> %s) by=%s",
        issue.id, tech.id, previous, STATUS_ASSIGNED, admin.owner_user_id,
    )
    return {"issue_id": issue.id, "status": issue.status, "assigned_to": issue.assigned_to}


def update_issue_status(identity, issue_id, status):
    """Admin status change, checked against the transition table."""
    admin = profile_service.require_admin_mutation(identity)
    status = require_choice(status, ISSUE_STATUSES, "status")
    issue = get_or_raise(Issue, issue_id, "Issue")

    previous = _apply_transition(issue, status)
    db.session.flush()
    logger.info(
        "Issue %s status %s -> %s by=%s", issue.id, previous, status, admin.owner_user_id,
    )
    return {"issue_id": issue.id, "status": issue.status, "assigned_to": issue.assigned_to}


def update_issue_priority(identity, issue_id, priority):
    profile_service.require_admin_mutation(identity)
    priority = require_choice(priority, ISSUE_PRIORITIES, "priority")
    issue = get_or_raise(Issue, issue_id, "Issue")

    issue.priority = priority
    issue.updated_at = utcnow()
    db.session.flush()
    return {"issue_id": issue.id, "priority": issue.priority}


def delete_issue(identity, issue_id):
    """Delete an issue and its whole comment thread. Admin or SuperAdmin."""
    profile_service.require_admin_mutation(identity, (ROLE_ADMIN, ROLE_SUPER_ADMIN))
    issue = get_or_raise(Issue, issue_id, "Issue")

    removed = Comment.query.filter_by(issue_id=issue.id).delete(synchronize_session=False)
    db.session.delete(issue)
    db.session.flush()
    logger.info("Issue %s deleted with %d comments by=%s", issue_id, removed, identity)
    return {"issue_id": issue_id, "deleted_comments": removed}


# ── Technician completion ────────────────────────────────────────────────


def mark_issue_fixed(identity, issue_id, proof_photo=None):
    """Mark an assigned issue Fixed. Only the assigned technician may do this.

    With a proof photo, the photo is stored on the issue and a completion
    comment authored by the technician is appended.
    """
    profile = profile_service.require_role(identity, (ROLE_TECHNICIAN,))
    tech = profile_service.technician_for(profile)
    issue = get_or_raise(Issue, issue_id, "Issue")
    proof_photo = optional_text(proof_photo, "proof_photo")

    if issue.assigned_to != tech.id:
        raise AuthorizationError("You are not assigned to this issue", user_id=identity)

    previous = _apply_transition(issue, STATUS_FIXED)
    if proof_photo:
        issue.proof_photo = proof_photo
        db.session.add(Comment(
            issue_id=issue.id,
            author_user_id=identity,
            message=FIXED_WITH_PROOF_MESSAGE,
        ))
    db.session.flush()
    logger.info(
        "Issue %s fixed (%s -> %s) by technician=%s proof=%s",
        issue.id, previous, STATUS_FIXED, tech.id, bool(proof_photo),
    )
    return {"issue_id": issue.id, "status": issue.status}
