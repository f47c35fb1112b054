from sqlalchemy import BigInteger, Column, String

from app.db.base import Base


class RevokedToken(Base):
    """Session tokens logged out before their expiry."""

    __tablename__ = "revoked_tokens"

    jti = Column(String(64), primary_key=True)
    user_id = Column(String(36), nullable=False)
    expires_at = Column(BigInteger, nullable=False)
