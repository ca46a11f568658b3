"""Auth error taxonomy. Each error carries the HTTP status it surfaces as."""

from typing import Optional

UNAUTHENTICATED_MESSAGE = "You are not logged in! Please log in to get access."


class AuthError(Exception):
    """Base for every failure an auth flow reports to the client."""

    status_code: int = 400
    code: str = "AUTH_ERROR"
    default_message: str = "Authentication failed."

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def status(self) -> str:
        return "fail" if self.status_code < 500 else "error"


class MissingCredentials(AuthError):
    status_code = 400
    code = "MISSING_CREDENTIALS"
    default_message = "Please provide email and password!"


class InvalidCredentials(AuthError):
    status_code = 401
    code = "INVALID_CREDENTIALS"
    default_message = "Incorrect email or password"


class Unauthenticated(AuthError):
    status_code = 401
    code = "UNAUTHENTICATED"
    default_message = UNAUTHENTICATED_MESSAGE


class StalePassword(AuthError):
    status_code = 401
    code = "STALE_PASSWORD"
    default_message = "User recently changed password! Please log in again."


class AccountGone(AuthError):
    status_code = 401
    code = "ACCOUNT_GONE"
    default_message = "The user belonging to this token does no longer exist."


class Forbidden(AuthError):
    status_code = 403
    code = "FORBIDDEN"
    default_message = "You do not have permission to perform this action"


class AccountNotFound(AuthError):
    status_code = 404
    code = "ACCOUNT_NOT_FOUND"
    default_message = "There is no account with that email address."


class InvalidOrExpiredToken(AuthError):
    status_code = 400
    code = "INVALID_OR_EXPIRED_TOKEN"
    default_message = "Token is invalid or has expired"


class WrongCurrentPassword(AuthError):
    status_code = 401
    code = "WRONG_CURRENT_PASSWORD"
    default_message = "Your current password is wrong."


class DeliveryFailed(AuthError):
    status_code = 500
    code = "DELIVERY_FAILED"
    default_message = "There was an error sending the email. Try again later!"


class DuplicateEmail(AuthError):
    status_code = 400
    code = "DUPLICATE_EMAIL"
    default_message = "Email already registered"
