"""
CiviFix
Shared SQLAlchemy handle and column helpers.

Every model module imports ``db`` from here; the application factory
binds it with ``db.init_app(app)``.
"""

import uuid
from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def new_uuid():
    return str(uuid.uuid4())


def utcnow():
    return datetime.now(timezone.utc)


def isoformat(value):
    return value.isoformat() if value else None
