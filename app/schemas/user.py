from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

from app.models.users import User
from app.schemas.my_base_model import CustomBaseModel

DEFAULT_DISPLAY_NAME = "User"


def to_utc_iso(value: Optional[datetime]) -> Optional[str]:
    """SQLite hands back naive datetimes, stored values are always UTC"""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


class UserResponse(CustomBaseModel):
    """Public projection of an identity record, never carries the nonce"""

    id: str = ""
    walletAddress: str = ""
    name: str = ""
    email: str = ""

    @classmethod
    def from_user(cls, user: User, fallback_name: bool = True) -> "UserResponse":
        return cls(
            id=user.id,
            walletAddress=user.wallet_address,
            name=user.name or (DEFAULT_DISPLAY_NAME if fallback_name else ""),
            email=user.email,
        )


class UserDetailResponse(UserResponse):
    """Identity projection for the session owner"""

    createdAt: Optional[str] = None
    lastLogin: Optional[str] = None

    @classmethod
    def from_user(cls, user: User, fallback_name: bool = True) -> "UserDetailResponse":
        return cls(
            id=user.id,
            walletAddress=user.wallet_address,
            name=user.name or (DEFAULT_DISPLAY_NAME if fallback_name else ""),
            email=user.email,
            createdAt=to_utc_iso(user.created_at),
            lastLogin=to_utc_iso(user.last_login_at),
        )


class MeResponse(CustomBaseModel):
    user: UserDetailResponse


class ProfileUpdateRequest(BaseModel):
    """Request model for profile update, absent fields stay unchanged"""

    name: Optional[str] = Field(None, max_length=255)
    email: Optional[str] = Field(None, max_length=255)


class ProfileResponse(CustomBaseModel):
    user: UserResponse
