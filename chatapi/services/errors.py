"""Service-level errors. Each carries a message, a stable code and an HTTP status."""


class ChatServiceError(Exception):
    """Base for every error a service may raise across its boundary."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


class InvalidCredentialsError(ChatServiceError):
    """Login failed. Never says whether the email or the password was wrong."""

    status_code = 401
    code = "INVALID_CREDENTIALS"

    def __init__(self, message: str = "Invalid email or password.") -> None:
        super().__init__(message)


class TokenInvalidError(ChatServiceError):
    """Access or refresh token rejected. Never says which check failed."""

    status_code = 401
    code = "INVALID_TOKEN"

    def __init__(self, message: str = "Invalid or expired token.") -> None:
        super().__init__(message)


class RefreshTokenNotFoundError(TokenInvalidError):
    """No principal holds the presented refresh token (unknown, revoked or rotated)."""

    code = "INVALID_REFRESH_TOKEN"

    def __init__(self, message: str = "Invalid refresh token.") -> None:
        super().__init__(message)


class TokenExpiredError(ChatServiceError):
    status_code = 401
    code = "REFRESH_TOKEN_EXPIRED"

    def __init__(self, message: str = "Refresh token has expired.") -> None:
        super().__init__(message)


class ForbiddenError(ChatServiceError):
    """Authenticated, but not a room member or not the message owner."""

    status_code = 403
    code = "FORBIDDEN"


class NotFoundError(ChatServiceError):
    status_code = 404
    code = "NOT_FOUND"


class RoomNotFoundError(NotFoundError):
    code = "ROOM_NOT_FOUND"

    def __init__(self, message: str = "Chat room not found.") -> None:
        super().__init__(message)


class MessageNotFoundError(NotFoundError):
    code = "MESSAGE_NOT_FOUND"

    def __init__(self, message: str = "Message not found.") -> None:
        super().__init__(message)


class UserNotFoundError(NotFoundError):
    code = "USER_NOT_FOUND"

    def __init__(self, message: str = "User not found.") -> None:
        super().__init__(message)


class MemberNotFoundError(NotFoundError):
    code = "MEMBER_NOT_FOUND"

    def __init__(self, message: str = "Member not found.") -> None:
        super().__init__(message)


class ConflictError(ChatServiceError):
    status_code = 409
    code = "CONFLICT"


class EmailTakenError(ConflictError):
    code = "EMAIL_EXISTS"

    def __init__(self, message: str = "This email address is already in use.") -> None:
        super().__init__(message)


class AlreadyMemberError(ConflictError):
    code = "ALREADY_MEMBER"

    def __init__(self, message: str = "User is already a member.") -> None:
        super().__init__(message)


class ValidationFailedError(ChatServiceError):
    """Input is well-formed but semantically unacceptable."""

    status_code = 422
    code = "VALIDATION_FAILED"


class UnknownMemberError(ValidationFailedError):
    code = "UNKNOWN_MEMBER"

    def __init__(self, message: str = "Some users do not exist.") -> None:
        super().__init__(message)


class EditWindowExpiredError(ValidationFailedError):
    code = "EDIT_WINDOW_EXPIRED"


class InvalidAvatarError(ValidationFailedError):
    code = "INVALID_AVATAR"


class InternalError(ChatServiceError):
    """Store unavailable or transaction failure."""
