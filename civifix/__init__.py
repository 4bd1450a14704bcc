"""
CiviFix
Flask Application Factory.

Usage:
    from civifix import create_app
    app = create_app()           # defaults to APP_ENV or "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

import click
from flask import Flask, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate

from civifix.config import config
from civifix.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from civifix.models import db
from civifix.middleware.logging_config import configure_logging
from civifix.middleware.timing import init_request_timing
from civifix.middleware.security_headers import init_security_headers
from civifix.middleware.rate_limiter import init_rate_limits
from civifix.middleware.jwt_auth import init_jwt_middleware
from civifix.utils.errors import E, api_error

logger = logging.getLogger(__name__)

# ── SQLite FK enforcement (global engine event) ─────────────────────────
from sqlalchemy import event as _sa_event, engine as _sa_engine


@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],                     # no global limit, applied per-blueprint
    storage_uri=os.getenv("REDIS_URL") or "memory://",  # Redis in production, memory for dev
)


def _register_error_handlers(app):
    """Map service exceptions to JSON error responses.

    Every handler rolls the session back first so a half-applied request
    never leaks into the next one.
    """

    @app.errorhandler(AuthenticationError)
    def _unauthenticated(error):
        db.session.rollback()
        return api_error(E.UNAUTHENTICATED, str(error))

    @app.errorhandler(AuthorizationError)
    def _forbidden(error):
        db.session.rollback()
        logger.info("Forbidden %s %s user=%s: %s",
                    request.method, request.path, error.user_id, error)
        return api_error(E.FORBIDDEN, str(error))

    @app.errorhandler(NotFoundError)
    def _not_found(error):
        db.session.rollback()
        return api_error(E.NOT_FOUND, str(error))

    @app.errorhandler(InvalidTransitionError)
    def _invalid_transition(error):
        db.session.rollback()
        return api_error(E.CONFLICT_STATE, str(error), details=error.details)

    @app.errorhandler(ValidationError)
    def _validation(error):
        db.session.rollback()
        return api_error(E.VALIDATION_INVALID, str(error), details=error.details)

    @app.errorhandler(404)
    def _route_not_found(e):
        return {"error": "Not found", "code": E.NOT_FOUND, "path": request.path}, 404

    @app.errorhandler(405)
    def _method_not_allowed(e):
        return {"error": "Method not allowed"}, 405

    @app.errorhandler(413)
    def _too_large(e):
        return api_error(E.PAYLOAD_TOO_LARGE, "Request body too large")

    @app.errorhandler(429)
    def _rate_limited(e):
        return {"error": "Too many requests", "code": E.RATE_LIMITED,
                "retry_after": e.description}, 429

    @app.errorhandler(500)
    def _server_error(e):
        db.session.rollback()
        logger.error("500 error on %s %s: %s", request.method, request.path, e, exc_info=True)
        return api_error(E.INTERNAL, "Internal server error")


def _register_cli(app):

    @app.cli.command("promote-superadmin")
    @click.argument("user_id")
    @click.option("--name", "full_name", default=None, help="Full name (required for a new profile).")
    @click.option("--phone", default=None, help="Phone number (required for a new profile).")
    def promote_superadmin_cmd(user_id, full_name, phone):
        """Create or promote USER_ID's profile to SuperAdmin."""
        from civifix.services.profile_service import promote_super_admin
        try:
            profile = promote_super_admin(user_id, full_name=full_name, phone=phone)
        except ValidationError as exc:
            db.session.rollback()
            raise click.ClickException(str(exc)) from exc
        db.session.commit()
        click.echo(f"{profile['user_id']} is now SuperAdmin (profile {profile['id']})")

    @app.cli.command("issue-token")
    @click.argument("user_id")
    @click.option("--expires", type=int, default=None, help="Lifetime in seconds.")
    def issue_token_cmd(user_id, expires):
        """Print an access token for USER_ID (development helper)."""
        from civifix.services.jwt_service import generate_access_token
        click.echo(generate_access_token(user_id, expires_in=expires))


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config[config_name]())

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    # ── Security headers ─────────────────────────────────────────────────
    init_security_headers(app)

    # ── Request timing middleware ────────────────────────────────────────
    init_request_timing(app)

    # ── JWT identity middleware ──────────────────────────────────────────
    init_jwt_middleware(app)

    # ── Request guards (input length) ────────────────────────────────────
    @app.before_request
    def _guard_request():
        max_len = app.config.get("MAX_CONTENT_LENGTH")
        if max_len and request.content_length and request.content_length > max_len:
            return api_error(E.PAYLOAD_TOO_LARGE, "Request body too large")
        return None

    # ── Import all models so Alembic can detect them ─────────────────────
    from civifix.models import profile as _profile_models  # noqa: F401
    from civifix.models import issue as _issue_models      # noqa: F401

    # ── Auto-create tables (CREATE IF NOT EXISTS) ────────────────────────
    if not app.config.get("TESTING"):
        uri = app.config["SQLALCHEMY_DATABASE_URI"]
        if uri.startswith("sqlite:///") and ":memory:" not in uri:
            os.makedirs(os.path.dirname(uri[len("sqlite:///"):]) or ".", exist_ok=True)
        with app.app_context():
            db.create_all()
            app.logger.info("db.create_all() completed successfully")

    # ── Blueprints ───────────────────────────────────────────────────────
    from civifix.blueprints.health_bp import health_bp
    from civifix.blueprints.public_bp import public_bp
    from civifix.blueprints.profile_bp import profile_bp
    from civifix.blueprints.issue_bp import issue_bp
    from civifix.blueprints.admin_bp import admin_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(public_bp)
    app.register_blueprint(profile_bp)
    app.register_blueprint(issue_bp)
    app.register_blueprint(admin_bp)

    # ── Error handlers ───────────────────────────────────────────────────
    _register_error_handlers(app)

    # ── CLI commands ─────────────────────────────────────────────────────
    _register_cli(app)

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    return app
