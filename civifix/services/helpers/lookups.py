"""
Record lookup helpers shared by the service layer.

get_or_raise:
    Single-record fetch by primary key that raises NotFoundError instead of
    returning None, so services never forget the existence check.

Name joins:
    Read views attach display names (reporter, technician, comment author)
    by collecting the referenced ids, loading them with ONE ``IN`` query
    and building an id -> name map. The map lives for a single call; there
    is no cache and nothing to invalidate.

Usage:
    issue = get_or_raise(Issue, issue_id)

    reporter_names = profile_names_by_user([i.reported_by for i in issues])
    name = reporter_names.get(issue.reported_by, UNKNOWN_NAME)
"""

import logging

from sqlalchemy import select

from civifix.core.exceptions import NotFoundError
from civifix.models import db
from civifix.models.profile import Technician, UserProfile

logger = logging.getLogger(__name__)

UNKNOWN_NAME = "Unknown"


def get_or_raise(model, pk, label: str | None = None):
    """Fetch ``model`` by primary key or raise NotFoundError.

    Args:
        model: SQLAlchemy model class.
        pk: Primary key value; falsy values are treated as missing.
        label: Entity name used in the error message (defaults to class name).
    """
    label = label or model.__name__
    obj = db.session.get(model, pk) if pk else None
    if obj is None:
        logger.debug("%s lookup missed id=%s", label, pk)
        raise NotFoundError(resource=label, resource_id=pk)
    return obj


def profile_names_by_user(user_ids) -> dict[str, str]:
    """Map owner_user_id -> full_name for the given identities."""
    ids = {uid for uid in user_ids if uid}
    if not ids:
        return {}
    rows = db.session.execute(
        select(UserProfile.owner_user_id, UserProfile.full_name)
        .where(UserProfile.owner_user_id.in_(ids))
    ).all()
    return {owner_user_id: full_name for owner_user_id, full_name in rows}


def technician_names_by_id(technician_ids) -> dict[str, str]:
    """Map Technician.id -> name for the given technician ids."""
    ids = {tid for tid in technician_ids if tid}
    if not ids:
        return {}
    rows = db.session.execute(
        select(Technician.id, Technician.name).where(Technician.id.in_(ids))
    ).all()
    return {tech_id: name for tech_id, name in rows}
