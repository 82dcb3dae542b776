"""Error taxonomy shared by the domain services and the GraphQL layer.

Every error carries an ``extensions`` dict; graphql-core copies it onto the
``GraphQLError`` it builds around the exception, so clients receive a stable
``extensions.code`` next to the message.
"""


class AppError(Exception):
    """Base class for errors reported to API clients."""

    code = "INTERNAL_SERVER_ERROR"
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def extensions(self) -> dict:
        return {"code": self.code}


class Unauthenticated(AppError):
    code = "UNAUTHENTICATED"
    default_message = "Authentication required"


class Forbidden(AppError):
    code = "FORBIDDEN"
    default_message = "Admin access required"


class Conflict(AppError):
    code = "CONFLICT"
    default_message = "Resource already exists"


class InvalidCredentials(AppError):
    """Raised for an unknown email and a wrong password alike."""

    code = "INVALID_CREDENTIALS"
    default_message = "Invalid credentials"


class NotFound(AppError):
    code = "NOT_FOUND"
    default_message = "Not found"


class ValidationFailed(AppError):
    code = "BAD_USER_INPUT"
    default_message = "Invalid input"


class Internal(AppError):
    pass
