import uuid

from sqlalchemy import BigInteger, Column, DateTime, String
from sqlalchemy.sql import func

from app.db.base import Base


class User(Base):
    """Identity record, one per wallet address.
    Example:
    {
        "id": "550e8400-e29b-41d4-a716-446655440000",
        "wallet_address": "0x5aaeb6053f3e94c9b9a09f33669435e7ef1beaed",
        "name": "",
        "email": "",
        "nonce": "kB3xQ9mZr2LtW7vA",
        "nonce_issued_at": 1763461800,
        "created_at": "2024-01-01T12:00:00",
        "last_login_at": "2024-01-01T12:00:00"
    }
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    wallet_address = Column(String(42), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False, default="")
    email = Column(String(255), nullable=False, default="")
    nonce = Column(String(64), nullable=False)
    nonce_issued_at = Column(BigInteger, nullable=False)
    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    last_login_at = Column(DateTime(timezone=True), nullable=True)
