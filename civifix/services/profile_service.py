"""Profile & role service.

Transaction policy: functions use flush(), never commit().
The caller (route handler / CLI command) commits.

Operations:
- create_or_update_profile  (+ one-time Technician record sync)
- get_profile
- require_role / require_approved_admin / require_admin_mutation
- SuperAdmin: list pending admins, list admins, approve / reject / revoke,
  platform stats
- Technician self-service: availability, specialty
- list_technicians (Admin)

admin_status on profile update:
    entering the Admin role from another role  -> "pending"
    already Admin                               -> unchanged
    leaving the Admin role                      -> unchanged (ignored unless Admin)
"""
import logging

from flask import current_app

from civifix.core.exceptions import AuthenticationError, AuthorizationError, NotFoundError
from civifix.models import db
from civifix.models.issue import Issue, STATUS_FIXED
from civifix.models.profile import (
    ADMIN_APPROVED,
    ADMIN_PENDING,
    ADMIN_REJECTED,
    DEFAULT_SPECIALTY,
    NAME_MAX_LENGTH,
    PHONE_MAX_LENGTH,
    ROLE_ADMIN,
    ROLE_CITIZEN,
    ROLE_SUPER_ADMIN,
    ROLE_TECHNICIAN,
    SELF_ASSIGNABLE_ROLES,
    SPECIALTY_MAX_LENGTH,
    USER_ID_MAX_LENGTH,
    Technician,
    UserProfile,
)
from civifix.services.helpers.validation import require_bool, require_choice, require_text

logger = logging.getLogger(__name__)

ADMIN_ROLES = (ROLE_ADMIN, ROLE_SUPER_ADMIN)


# ── Identity & role checks ───────────────────────────────────────────────


def require_identity(identity):
    """Raise AuthenticationError unless the request carries a caller identity."""
    if not identity:
        raise AuthenticationError("Not authenticated")
    return identity


def find_profile(identity):
    """Return the caller's UserProfile row or None."""
    if not identity:
        return None
    return UserProfile.query.filter_by(owner_user_id=identity).first()


def get_profile(identity):
    """Return the caller's serialized profile, or None when unauthenticated / no profile."""
    profile = find_profile(identity)
    return profile.to_dict() if profile else None


def require_role(identity, allowed_roles):
    """Return the caller's profile if its role is in ``allowed_roles``.

    Raises:
        AuthenticationError: no identity.
        AuthorizationError: no profile, or role not allowed.
    """
    require_identity(identity)
    profile = find_profile(identity)
    if not profile or profile.role not in allowed_roles:
        logger.info(
            "Role check failed user=%s role=%s allowed=%s",
            identity, profile.role if profile else None, list(allowed_roles),
        )
        raise AuthorizationError("Not authorized for this action", user_id=identity)
    return profile


def require_approved_admin(identity, allowed_roles=ADMIN_ROLES):
    """``require_role`` plus the approval gate: an Admin must be approved."""
    profile = require_role(identity, allowed_roles)
    if profile.role == ROLE_ADMIN and not profile.is_approved_admin:
        raise AuthorizationError("Your admin account is pending approval", user_id=identity)
    return profile


def require_admin_mutation(identity, allowed_roles=(ROLE_ADMIN,)):
    """Role check for Admin mutations.

    The approval gate only applies when STRICT_ADMIN_APPROVAL is enabled;
    by default an unapproved Admin may still triage issues.
    """
    if current_app.config.get("STRICT_ADMIN_APPROVAL", False):
        return require_approved_admin(identity, allowed_roles)
    return require_role(identity, allowed_roles)


# ── Profile create / update ──────────────────────────────────────────────


def create_or_update_profile(identity, full_name, phone, role):
    """Create the caller's profile or overwrite name/phone/role on the existing one.

    A Technician profile gets a matching Technician record the first time
    only; changing role away from Technician leaves that record in place.

    Returns:
        Serialized profile dict.
    """
    require_identity(identity)
    full_name = require_text(full_name, "full_name", NAME_MAX_LENGTH)
    phone = require_text(phone, "phone", PHONE_MAX_LENGTH)
    role = require_choice(role, SELF_ASSIGNABLE_ROLES, "role")

    profile = find_profile(identity)
    if profile:
        previous_role = profile.role
        profile.full_name = full_name
        profile.phone = phone
        profile.role = role
        if role == ROLE_ADMIN and previous_role != ROLE_ADMIN:
            profile.admin_status = ADMIN_PENDING
        logger.info("Profile updated user=%s role=%s->%s", identity, previous_role, role)
    else:
        profile = UserProfile(
            owner_user_id=identity,
            full_name=full_name,
            phone=phone,
            role=role,
            admin_status=ADMIN_PENDING if role == ROLE_ADMIN else None,
        )
        db.session.add(profile)
        logger.info("Profile created user=%s role=%s", identity, role)

    if role == ROLE_TECHNICIAN:
        _ensure_technician(identity, full_name, phone)

    db.session.flush()
    return profile.to_dict()


def _ensure_technician(identity, name, phone):
    existing = Technician.query.filter_by(owner_user_id=identity).first()
    if existing:
        return existing
    tech = Technician(
        owner_user_id=identity,
        name=name,
        phone=phone,
        specialty=DEFAULT_SPECIALTY,
        available=True,
    )
    db.session.add(tech)
    logger.info("Technician record created user=%s", identity)
    return tech


def promote_super_admin(user_id, full_name=None, phone=None):
    """Grant SuperAdmin to ``user_id``, creating the profile if needed (CLI only)."""
    user_id = require_text(user_id, "user_id", USER_ID_MAX_LENGTH)
    profile = find_profile(user_id)
    if profile:
        profile.role = ROLE_SUPER_ADMIN
        if full_name:
            profile.full_name = require_text(full_name, "full_name", NAME_MAX_LENGTH)
        if phone:
            profile.phone = require_text(phone, "phone", PHONE_MAX_LENGTH)
    else:
        profile = UserProfile(
            owner_user_id=user_id,
            full_name=require_text(full_name, "full_name", NAME_MAX_LENGTH),
            phone=require_text(phone, "phone", PHONE_MAX_LENGTH),
            role=ROLE_SUPER_ADMIN,
        )
        db.session.add(profile)
    db.session.flush()
    logger.info("SuperAdmin granted user=%s", user_id)
    return profile.to_dict()


# ── SuperAdmin: admin approval ───────────────────────────────────────────


def _admin_row(profile):
    return {
        "id": profile.id,
        "user_id": profile.owner_user_id,
        "full_name": profile.full_name,
        "phone": profile.phone,
        "admin_status": profile.admin_status,
        "created_at": profile.to_dict()["created_at"],
    }


def list_pending_admins(identity):
    require_role(identity, (ROLE_SUPER_ADMIN,))
    admins = (
        UserProfile.query
        .filter_by(role=ROLE_ADMIN, admin_status=ADMIN_PENDING)
        .order_by(UserProfile.created_at.desc())
        .all()
    )
    return [_admin_row(a) for a in admins]


def list_admins(identity):
    require_role(identity, (ROLE_SUPER_ADMIN,))
    admins = (
        UserProfile.query
        .filter_by(role=ROLE_ADMIN)
        .order_by(UserProfile.created_at.desc())
        .all()
    )
    return [_admin_row(a) for a in admins]


def _set_admin_status(identity, admin_profile_id, new_status, action):
    require_role(identity, (ROLE_SUPER_ADMIN,))
    admin = None
    if admin_profile_id:
        admin = UserProfile.query.filter_by(id=admin_profile_id, role=ROLE_ADMIN).first()
    if admin is None:
        raise NotFoundError(resource="Admin", resource_id=admin_profile_id)

    previous = admin.admin_status
    admin.admin_status = new_status
    db.session.flush()
    logger.info(
        "Admin %s profile=%s status=%s->%s by=%s",
        action, admin.id, previous, new_status, identity,
    )
    return _admin_row(admin)


def approve_admin(identity, admin_profile_id):
    return _set_admin_status(identity, admin_profile_id, ADMIN_APPROVED, "approve")


def reject_admin(identity, admin_profile_id):
    return _set_admin_status(identity, admin_profile_id, ADMIN_REJECTED, "reject")


def revoke_admin(identity, admin_profile_id):
    """Revoke an admin's access. Same effect as reject; there is no 'revoked' state."""
    return _set_admin_status(identity, admin_profile_id, ADMIN_REJECTED, "revoke")


def get_super_admin_stats(identity):
    """Platform-wide user and issue counts for the SuperAdmin dashboard."""
    require_role(identity, (ROLE_SUPER_ADMIN,))
    profiles = UserProfile.query.all()
    admins = [p for p in profiles if p.role == ROLE_ADMIN]
    return {
        "total_users": len(profiles),
        "total_citizens": sum(1 for p in profiles if p.role == ROLE_CITIZEN),
        "total_admins": len(admins),
        "pending_admins": sum(1 for p in admins if p.admin_status == ADMIN_PENDING),
        "approved_admins": sum(1 for p in admins if p.admin_status == ADMIN_APPROVED),
        "total_technicians": sum(1 for p in profiles if p.role == ROLE_TECHNICIAN),
        "total_issues": Issue.query.count(),
        "resolved_issues": Issue.query.filter_by(status=STATUS_FIXED).count(),
    }


# ── Technicians ──────────────────────────────────────────────────────────


def technician_for(profile):
    """Return the Technician record owned by ``profile`` or raise NotFoundError."""
    tech = Technician.query.filter_by(owner_user_id=profile.owner_user_id).first()
    if tech is None:
        raise NotFoundError(resource="Technician profile", resource_id=profile.owner_user_id)
    return tech


def update_technician_availability(identity, available):
    profile = require_role(identity, (ROLE_TECHNICIAN,))
    available = require_bool(available, "available")
    tech = technician_for(profile)
    tech.available = available
    db.session.flush()
    logger.info("Technician %s availability=%s", tech.id, available)
    return tech.to_dict()


def update_technician_specialty(identity, specialty):
    profile = require_role(identity, (ROLE_TECHNICIAN,))
    specialty = require_text(specialty, "specialty", SPECIALTY_MAX_LENGTH)
    tech = technician_for(profile)
    tech.specialty = specialty
    db.session.flush()
    return tech.to_dict()


def list_technicians(identity):
    """All technicians ordered by name (Admin only)."""
    require_admin_mutation(identity)
    return [t.to_dict() for t in Technician.query.order_by(Technician.name).all()]
