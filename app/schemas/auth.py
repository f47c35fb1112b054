from typing import Optional

from pydantic import BaseModel, Field

from app.schemas.my_base_model import CustomBaseModel
from app.schemas.user import UserResponse


class NonceRequest(BaseModel):
    """Request model for nonce generation - input validation"""

    walletAddress: Optional[str] = Field(None, description="Wallet address (0x...)")


class NonceResponse(CustomBaseModel):
    """Response model for nonce generation - output"""

    nonce: str = ""


class VerifyRequest(BaseModel):
    """Request model for sign-in verification - input validation"""

    message: Optional[str] = Field(None, description="EIP-4361 sign-in message, exactly as signed")
    signature: Optional[str] = Field(None, description="Hex personal_sign signature of the message")


class AuthResponse(CustomBaseModel):
    """Response model for authentication - output"""

    token: str = ""
    user: UserResponse


class LogoutResponse(CustomBaseModel):
    success: bool = True
