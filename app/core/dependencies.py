"""
FastAPI Authentication Dependencies
This module provides FastAPI dependency functions that can be injected into route handlers
to automatically extract and validate session tokens from the Authorization header.
Usage in endpoints:
    @router.get("/protected")
    def protected_route(user: User = Depends(get_current_user)):
        # user is the identity record the token resolves to
        return {"user": user.wallet_address}
Flow:
1. Client sends request with Authorization: Bearer <token> header
2. FastAPI calls get_current_user() dependency
3. get_bearer_token() extracts token from header
4. AuthService.authenticate() validates the JWT and re-resolves the identity
5. Returns the User record to the route handler
"""

from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from app.core.errors import Unauthorized
from app.db.session import get_db
from app.models.users import User
from app.services.auth_service import AuthService, build_auth_service


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    return build_auth_service(db)


def get_bearer_token(
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> str:
    """
    Extract the token from the Authorization header.
    Supports both "Bearer <token>" and plain token formats.
    """
    if not authorization:
        raise Unauthorized()

    authorization = authorization.strip()
    if authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
    else:
        token = authorization
    if not token:
        raise Unauthorized()
    return token


def get_current_user(
    token: str = Depends(get_bearer_token),
    auth_service: AuthService = Depends(get_auth_service),
) -> User:
    return auth_service.authenticate(token)
