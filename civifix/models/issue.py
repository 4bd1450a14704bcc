"""
CiviFix
Issue domain models.

Models:
    - Issue: a reported infrastructure problem with location, category,
      status and priority
    - Comment: append-only discussion entry owned by an Issue

Issue status machine (ISSUE_TRANSITIONS):
    Pending  -> Assigned
    Assigned -> Assigned (re-assignment) | Fixed | Pending (un-assign)
    Fixed    -> Pending (reopen) | Assigned (reopen to current assignee)
"""

from civifix.models import db, isoformat, new_uuid, utcnow


# ── Constants ────────────────────────────────────────────────────────────────

ISSUE_CATEGORIES = ("Road", "Water", "Power", "Waste", "Other")

STATUS_PENDING = "Pending"
STATUS_ASSIGNED = "Assigned"
STATUS_FIXED = "Fixed"

ISSUE_STATUSES = (STATUS_PENDING, STATUS_ASSIGNED, STATUS_FIXED)

PRIORITY_LOW = "Low"
PRIORITY_MEDIUM = "Medium"
PRIORITY_HIGH = "High"

ISSUE_PRIORITIES = (PRIORITY_LOW, PRIORITY_MEDIUM, PRIORITY_HIGH)

# Higher rank sorts first in the technician work queue.
PRIORITY_RANK = {PRIORITY_HIGH: 3, PRIORITY_MEDIUM: 2, PRIORITY_LOW: 1}

ISSUE_TRANSITIONS = {
    STATUS_PENDING:  [STATUS_ASSIGNED],
    STATUS_ASSIGNED: [STATUS_ASSIGNED, STATUS_FIXED, STATUS_PENDING],
    STATUS_FIXED:    [STATUS_PENDING, STATUS_ASSIGNED],
}

FIXED_WITH_PROOF_MESSAGE = "Issue marked as fixed. Proof photo attached."

TITLE_MAX_LENGTH = 300


def validate_issue_transition(old_status, new_status):
    """Return True if Issue status transition is valid."""
    return new_status in ISSUE_TRANSITIONS.get(old_status, [])


# ═══════════════════════════════════════════════════════════════════════════
#  ISSUE
# ═══════════════════════════════════════════════════════════════════════════

class Issue(db.Model):
    """
    A citizen report.

    ``reported_by`` is the reporter's identity and never changes.
    ``assigned_to`` is a weak reference to Technician.id (no FK cascade;
    technician deletion is not modelled).
    """

    __tablename__ = "issues"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    title = db.Column(db.String(TITLE_MAX_LENGTH), nullable=False)
    description = db.Column(db.Text, nullable=False)
    category = db.Column(db.String(20), nullable=False)
    photo = db.Column(db.Text, default="", comment="Base64 image or URL")
    latitude = db.Column(db.Float, nullable=False)
    longitude = db.Column(db.Float, nullable=False)
    status = db.Column(db.String(20), nullable=False, default=STATUS_PENDING)
    priority = db.Column(db.String(20), nullable=False, default=PRIORITY_MEDIUM)
    reported_by = db.Column(db.String(64), nullable=False)
    assigned_to = db.Column(db.String(36), nullable=True, comment="Technician.id")
    proof_photo = db.Column(db.Text, nullable=True, comment="Completion proof from the technician")
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        db.Index("ix_issues_status", "status"),
        db.Index("ix_issues_reported_by", "reported_by"),
        db.Index("ix_issues_assigned_to", "assigned_to"),
        db.Index("ix_issues_category", "category"),
        db.Index("ix_issues_priority", "priority"),
        db.Index("ix_issues_lat_lng", "latitude", "longitude"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "photo": self.photo or "",
            "latitude": self.latitude,
            "longitude": self.longitude,
            "status": self.status,
            "priority": self.priority,
            "reported_by": self.reported_by,
            "assigned_to": self.assigned_to,
            "proof_photo": self.proof_photo,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }

    def to_map_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "category": self.category,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "status": self.status,
            "priority": self.priority,
        }

    def to_public_dict(self):
        """Minimal projection for unauthenticated visitors: no reporter or location."""
        return {
            "id": self.id,
            "title": self.title,
            "category": self.category,
            "status": self.status,
            "created_at": isoformat(self.created_at),
        }

    def __repr__(self):
        return f"<Issue {self.id} {self.status}/{self.priority}>"


# ═══════════════════════════════════════════════════════════════════════════
#  COMMENT
# ═══════════════════════════════════════════════════════════════════════════

class Comment(db.Model):
    __tablename__ = "comments"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    issue_id = db.Column(
        db.String(36), db.ForeignKey("issues.id", ondelete="CASCADE"), nullable=False,
    )
    author_user_id = db.Column(db.String(64), nullable=False)
    message = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        db.Index("ix_comments_issue_id", "issue_id"),
        db.Index("ix_comments_author_user_id", "author_user_id"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "issue_id": self.issue_id,
            "author_user_id": self.author_user_id,
            "message": self.message,
            "created_at": isoformat(self.created_at),
        }
