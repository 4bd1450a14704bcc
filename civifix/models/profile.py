"""
CiviFix
Profile models — user profiles and technician records.

Models:
    - UserProfile: role + contact details for an externally-managed identity
    - Technician: assignment target, created once from a Technician profile

Both records are keyed by ``owner_user_id`` (the opaque identity supplied by
the authentication layer) but are independent rows: nothing cascades between
them beyond the creation-time sync in profile_service.
"""

from civifix.models import db, isoformat, new_uuid, utcnow


# ── Constants ────────────────────────────────────────────────────────────────

ROLE_CITIZEN = "Citizen"
ROLE_ADMIN = "Admin"
ROLE_TECHNICIAN = "Technician"
ROLE_SUPER_ADMIN = "SuperAdmin"

# SuperAdmin is granted out-of-band (CLI), never through the profile form.
SELF_ASSIGNABLE_ROLES = (ROLE_CITIZEN, ROLE_ADMIN, ROLE_TECHNICIAN)

ADMIN_PENDING = "pending"
ADMIN_APPROVED = "approved"
ADMIN_REJECTED = "rejected"

DEFAULT_SPECIALTY = "General"

USER_ID_MAX_LENGTH = 64
NAME_MAX_LENGTH = 200
PHONE_MAX_LENGTH = 50
SPECIALTY_MAX_LENGTH = 100


# ═══════════════════════════════════════════════════════════════
# USER PROFILES
# ═══════════════════════════════════════════════════════════════
class UserProfile(db.Model):
    __tablename__ = "user_profiles"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    owner_user_id = db.Column(db.String(USER_ID_MAX_LENGTH), nullable=False, unique=True)
    full_name = db.Column(db.String(NAME_MAX_LENGTH), nullable=False)
    phone = db.Column(db.String(PHONE_MAX_LENGTH), nullable=False)
    role = db.Column(db.String(20), nullable=False, default=ROLE_CITIZEN)
    admin_status = db.Column(
        db.String(20), nullable=True,
        comment="pending/approved/rejected, only meaningful when role=Admin",
    )
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False,
    )

    __table_args__ = (
        db.Index("ix_user_profiles_role", "role"),
        db.Index("ix_user_profiles_admin_status", "admin_status"),
    )

    @property
    def is_approved_admin(self):
        return self.role == ROLE_ADMIN and self.admin_status == ADMIN_APPROVED

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.owner_user_id,
            "full_name": self.full_name,
            "phone": self.phone,
            "role": self.role,
            "admin_status": self.admin_status or None,
            "created_at": isoformat(self.created_at),
        }

    def __repr__(self):
        return f"<UserProfile {self.owner_user_id} role={self.role}>"


# ═══════════════════════════════════════════════════════════════
# TECHNICIANS
# ═══════════════════════════════════════════════════════════════
class Technician(db.Model):
    __tablename__ = "technicians"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    owner_user_id = db.Column(db.String(USER_ID_MAX_LENGTH), nullable=False, unique=True)
    name = db.Column(db.String(NAME_MAX_LENGTH), nullable=False)
    phone = db.Column(db.String(PHONE_MAX_LENGTH), nullable=False)
    specialty = db.Column(db.String(SPECIALTY_MAX_LENGTH), nullable=False, default=DEFAULT_SPECIALTY)
    available = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        db.Index("ix_technicians_available", "available"),
        db.Index("ix_technicians_specialty", "specialty"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "specialty": self.specialty,
            "available": self.available,
        }

    def __repr__(self):
        return f"<Technician {self.name} ({self.specialty})>"
