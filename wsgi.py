"""
WSGI / Flask-Migrate entry point.

Usage:
    gunicorn wsgi:app
    flask --app wsgi db upgrade
    flask --app wsgi promote-superadmin <user_id> --name "..." --phone "..."
"""

from civifix import create_app

app = create_app()
