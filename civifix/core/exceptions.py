"""
Platform-wide exception hierarchy.

Services raise these; the application factory registers one handler per
type so every endpoint answers with the same status codes and the UI can
surface ``str(error)`` verbatim.

Usage:
    from civifix.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Issue", resource_id=issue_id)
    raise ValidationError("title is required", details={"title": "required"})

Mapping:
    AuthenticationError     -> 401
    AuthorizationError      -> 403
    ValidationError         -> 400
    InvalidTransitionError  -> 409
    NotFoundError           -> 404
"""


class AuthenticationError(Exception):
    """Raised when an operation needs a caller identity and none was supplied."""

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message)


class AuthorizationError(Exception):
    """Raised when the caller is known but may not perform the action.

    Covers: no profile, role not allowed, Admin not yet approved, and a
    technician acting on an issue assigned to someone else.
    """

    def __init__(self, message: str = "Not authorized for this action", user_id: str | None = None) -> None:
        self.user_id = user_id
        super().__init__(message)


class NotFoundError(Exception):
    """Raised when a referenced record does not exist.

    Args:
        resource: Human-readable entity name (e.g. "Issue", "Admin").
        resource_id: The id that was looked up. Logged, not part of the message.
    """

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} not found")


class ValidationError(Exception):
    """Raised when arguments are missing, empty or outside their closed vocabulary.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown; keys are field names.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class InvalidTransitionError(ValidationError):
    """Raised when an issue status change is not allowed from its current status."""

    def __init__(self, issue_id: str, current: str, target: str, reason: str | None = None) -> None:
        msg = f"Cannot move issue from '{current}' to '{target}'"
        if reason:
            msg += f": {reason}"
        self.issue_id = issue_id
        self.current_status = current
        self.target_status = target
        super().__init__(msg, details={"status": {"current": current, "target": target}})
