"""
CiviFix
Blueprint registry.

Every blueprint lives under /api/v1. Handlers read the caller identity set
by the JWT middleware, call one service function, and commit once with
db_commit_or_error. Service exceptions are rendered by the app-level
handlers registered in civifix.create_app.
"""

from flask import request


def query_arg(name):
    """Return a stripped query-string value, or None when absent or blank."""
    value = request.args.get(name, "")
    return value.strip() or None
