"""
JWT Token Utilities

This module handles JSON Web Token (JWT) creation and verification for wallet sessions.
After a user successfully verifies their sign-in message, this module creates a JWT token
that can be used for subsequent authenticated API requests.

Flow:
1. User verifies wallet signature -> TokenService.issue_token() generates JWT
2. User makes API request with JWT in Authorization header -> TokenService.decode_token() validates it
3. Protected endpoints use get_current_user() from dependencies.py to resolve the identity record

The JWT contains:
- user_id: Internal id of the identity record
- wallet_address: The authenticated wallet address (lowercase)
- jti: Random token id, checked against the revocation list
- iat: Issued at timestamp
- exp: Expiration timestamp (configurable via ACCESS_TOKEN_EXPIRE_SECONDS)
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt

from app.core.config import settings
from app.core.errors import Unauthorized
from app.models.users import User


if not settings.ENCODE_KEY:
    raise RuntimeError("ENCODE_KEY is not configured")

REQUIRED_CLAIMS = ("user_id", "wallet_address", "jti", "iat", "exp")


class TokenService:
    def __init__(self, secret: str, algorithm: str = "HS256", expire_seconds: int = 7 * 24 * 3600):
        """
        Args:
            secret: Signing key for HS256 tokens
            algorithm: JWT algorithm
            expire_seconds: Absolute token lifetime from issuance
        """
        if not secret:
            raise ValueError("secret is required")
        self.secret = secret
        self.algorithm = algorithm
        self.expire_seconds = expire_seconds

    def issue_token(self, user: User) -> str:
        """
        Create a JWT access token for an identity record.

        Called after a successful sign-in. The token is returned to the frontend
        and used in the Authorization: Bearer <token> header.
        """
        if not user.id or not user.wallet_address:
            raise ValueError("user id and wallet_address are required")

        now = datetime.now(timezone.utc)
        payload: Dict[str, Any] = {
            "user_id": user.id,
            "wallet_address": user.wallet_address,
            "jti": secrets.token_hex(16),
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=self.expire_seconds)).timestamp()),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode_token(self, token: str) -> Dict[str, Any]:
        """
        Verify signature and expiry of a token and return its claims.

        Raises:
            Unauthorized: For a missing, tampered, expired or incomplete token.
                The cause is kept out of the message.
        """
        if not token:
            raise Unauthorized()
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": list(REQUIRED_CLAIMS)},
            )
        except jwt.InvalidTokenError as exc:
            # ExpiredSignatureError is a subclass
            raise Unauthorized() from exc
        return payload


def get_token_service() -> TokenService:
    return TokenService(
        secret=settings.ENCODE_KEY,
        algorithm=settings.ENCODE_ALGORITHM,
        expire_seconds=settings.ACCESS_TOKEN_EXPIRE_SECONDS,
    )
