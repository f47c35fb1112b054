from typing import List

from fastapi import APIRouter, Depends, status

from app.core.dependencies import get_auth_service, get_bearer_token, get_current_user
from app.core.errors import AuthError, InternalError
from app.core.logger import get_logger
from app.models.users import User
import app.schemas.auth as schemas
from app.schemas.my_base_model import Message
from app.schemas.user import MeResponse, ProfileResponse, ProfileUpdateRequest, UserDetailResponse, UserResponse
from app.services.auth_service import AuthService

router = APIRouter()
group_tags: List[str] = ["Auth"]
logger = get_logger(__name__)

_error_responses = {
    status.HTTP_400_BAD_REQUEST: {"model": Message},
    status.HTTP_401_UNAUTHORIZED: {"model": Message},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": Message},
}


@router.post(
    "/nonce",
    tags=group_tags,
    response_model=schemas.NonceResponse,
    responses=_error_responses,
)
def request_nonce(
    body: schemas.NonceRequest, auth_service: AuthService = Depends(get_auth_service)
) -> schemas.NonceResponse:
    """Issue a fresh sign-in nonce for a wallet address, creating its identity on first use."""
    try:
        nonce = auth_service.request_nonce(body.walletAddress)
    except AuthError:
        raise
    except Exception:
        logger.exception("Get nonce error")
        raise InternalError("Failed to generate nonce")
    return schemas.NonceResponse(nonce=nonce)


@router.post(
    "/verify",
    tags=group_tags,
    response_model=schemas.AuthResponse,
    responses={**_error_responses, status.HTTP_404_NOT_FOUND: {"model": Message}},
)
def verify(
    body: schemas.VerifyRequest, auth_service: AuthService = Depends(get_auth_service)
) -> schemas.AuthResponse:
    """
    Verify a signed EIP-4361 message and return a session token.

    - 400: message or signature missing
    - 401: malformed message, invalid signature, or nonce mismatch
    - 404: no nonce was requested for the signing address
    """
    try:
        result = auth_service.sign_in(body.message, body.signature)
    except AuthError:
        raise
    except Exception:
        logger.exception("Verify error")
        raise InternalError("Failed to verify signature")
    return schemas.AuthResponse(token=result.token, user=UserResponse.from_user(result.user))


@router.get(
    "/me",
    tags=group_tags,
    response_model=MeResponse,
    responses={status.HTTP_401_UNAUTHORIZED: {"model": Message}},
)
def get_me(user: User = Depends(get_current_user)) -> MeResponse:
    """Return the identity behind the bearer token."""
    return MeResponse(user=UserDetailResponse.from_user(user))


@router.put(
    "/profile",
    tags=group_tags,
    response_model=ProfileResponse,
    responses=_error_responses,
)
def update_profile(
    body: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
) -> ProfileResponse:
    """Merge name/email into the caller's own identity; omitted fields are left unchanged."""
    try:
        user = auth_service.update_profile(user, name=body.name, email=body.email)
    except AuthError:
        raise
    except Exception:
        logger.exception("Update profile error")
        raise InternalError("Failed to update profile")
    return ProfileResponse(user=UserResponse.from_user(user, fallback_name=False))


@router.post(
    "/logout",
    tags=group_tags,
    response_model=schemas.LogoutResponse,
    responses={status.HTTP_401_UNAUTHORIZED: {"model": Message}},
)
def logout(
    token: str = Depends(get_bearer_token),
    auth_service: AuthService = Depends(get_auth_service),
) -> schemas.LogoutResponse:
    """Revoke the presented session token before its expiry."""
    auth_service.logout(token)
    return schemas.LogoutResponse(success=True)
