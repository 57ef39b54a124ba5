"""Error taxonomy surfaced by request handlers."""


class ClubError(Exception):
    """Base class for errors rendered into a response."""

    status_code = 500
    default_detail = "Something went wrong"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(ClubError):
    """Bad input shape. Handlers recover by re-rendering the form."""

    status_code = 400
    default_detail = "Invalid input"


class AuthError(ClubError):
    """Bad credentials. Never says which part was wrong."""

    status_code = 401
    default_detail = "Invalid email or password"


class PermissionDeniedError(ClubError):
    """Authenticated (or not) but not allowed to do this."""

    status_code = 403
    default_detail = "You don't have permission to do that"


class NotFoundError(ClubError):
    status_code = 404
    default_detail = "Not found"


class StorageError(ClubError):
    """Unexpected persistence failure. Logged, never retried."""

    status_code = 500
    default_detail = "Something went wrong on our end. Please try again later."


class EmailTakenError(ClubError):
    """Unique email constraint hit on insert."""

    status_code = 400
    default_detail = "Email already registered"
