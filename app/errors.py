"""Domain errors.

Every error carries a human-readable ``message``, a stable machine ``code`` and the
HTTP status the API layer answers with. ``app.main`` renders them as
``{"message", "code", "status"}``.
"""

from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base class for errors that map to an API response."""

    status_code: int = 400
    code: str = "error"
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None, **extra: Any) -> None:
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "status": self.status_code,
            **self.extra,
        }


class ValidationFailed(AppError):
    """Malformed or missing input. ``errors`` lists ``{field, message}`` items."""

    status_code = 422
    code = "validation-failed"
    default_message = "Validation failed"

    def __init__(self, message: str | None = None, errors: list[dict] | None = None) -> None:
        super().__init__(message, errors=errors or [])
        self.errors = errors or []


class Unauthenticated(AppError):
    status_code = 401
    code = "unauthenticated"
    default_message = "Missing or invalid api token"


class InvalidCredentials(Unauthenticated):
    code = "invalid-credentials"
    default_message = "User credentials not valid"


class RegistrationDisabled(AppError):
    status_code = 401
    code = "registration-disabled"
    default_message = "Registration is disabled on this server"


class Conflict(AppError):
    status_code = 409
    code = "conflict"
    default_message = "Resource already exists"


class NotFound(AppError):
    status_code = 404
    code = "not-found"
    default_message = "Not found"


class RecipeNotFound(NotFound):
    code = "recipe-not-found"
    default_message = "Recipe not found"


class ServiceNotFound(NotFound):
    code = "service-not-found"
    default_message = "Service not found"


class WorkspaceNotFound(NotFound):
    code = "workspace-not-found"
    default_message = "Workspace not found"


class IconNotFound(NotFound):
    code = "icon-not-found"
    default_message = "Icon doesn't exist"


class InvalidIdentifier(AppError):
    """User-supplied id contains path-traversal characters."""

    status_code = 400
    code = "invalid-identifier"
    default_message = 'Invalid identifier. Identifiers may not contain "." or "/"'


class UpstreamUnavailable(AppError):
    """Upstream directory or account API unreachable or returned an unexpected shape."""

    status_code = 502
    code = "upstream-unavailable"
    default_message = "The upstream server could not be reached"


class UpstreamLoginFailed(UpstreamUnavailable):
    status_code = 401
    code = "upstream-login-failed"
    default_message = (
        "Could not login into Franz with your supplied credentials. Please check and try again"
    )


class UpstreamProfileUnavailable(UpstreamUnavailable):
    code = "upstream-profile-unavailable"
    default_message = (
        "Could not get your user info from Franz. "
        "Please check your credentials or try again later"
    )


class LocalUserCreateFailed(Conflict):
    code = "local-user-create-failed"
    default_message = "Could not create your user in our system."


class ImportStepFailed(AppError):
    """A services/workspaces import step failed after the local user was created."""

    status_code = 502
    code = "import-step-failed"

    def __init__(self, step: str, message: str | None = None) -> None:
        super().__init__(message or f"Could not import your {step} into our system.", step=step)
        self.step = step
