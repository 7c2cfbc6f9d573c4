"""Domain exceptions.

Services raise these; the exception handlers registered in main.py turn
them into JSON responses of the form {"message": ...} (plus "errors" for
validation failures).
"""


class ListkeeperError(Exception):
    """Base class. Subclasses pick the HTTP status and default message."""

    status_code = 500
    message = "Server error."

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"message": self.message}


class ValidationError(ListkeeperError):
    """Malformed or missing input. Carries per-field messages."""

    status_code = 422
    message = "The given data was invalid."

    def __init__(self, errors: dict[str, list[str]], message: str | None = None):
        self.errors = errors
        if message is None and errors:
            # First field message doubles as the summary
            message = next(iter(errors.values()))[0]
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"message": self.message, "errors": self.errors}


class AuthenticationError(ListkeeperError):
    status_code = 401
    message = "Authentication failed."


class Unauthenticated(AuthenticationError):
    message = "Unauthenticated."


class InvalidCredentials(AuthenticationError):
    status_code = 422
    message = "Invalid credentials."


class AutoLoginFailed(AuthenticationError):
    """A freshly registered user could not be logged in.

    The credential store and the session manager disagree about a user
    that was just written, so this is surfaced as a server error.
    """

    status_code = 500
    message = "Registration succeeded but automatic login failed."


class NotFound(ListkeeperError):
    """Record absent, or owned by someone else. The two are not distinguished."""

    status_code = 404
    message = "Not found."


class CsrfTokenMismatch(ListkeeperError):
    status_code = 419
    message = "CSRF token mismatch."
