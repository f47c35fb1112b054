"""
Authentication error taxonomy.

Services raise these; ``main.py`` renders any of them as
``{"error": message}`` with the matching status code.
"""

from fastapi import status


class AuthError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequest(AuthError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request"


class MalformedMessage(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid message"


class InvalidSignature(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid signature"


class InvalidNonce(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid nonce"


class UserNotFound(AuthError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "User not found"


class Unauthorized(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authorized"


class InternalError(AuthError):
    pass
