import time

from sqlalchemy.orm import Session

from app.models.auth import RevokedToken


class TokenDenylist:
    """Ids of session tokens revoked before their expiry."""

    def __init__(self, db: Session):
        self.db = db

    def is_revoked(self, jti: str) -> bool:
        return self.db.query(RevokedToken).filter(RevokedToken.jti == jti).first() is not None

    def revoke(self, jti: str, user_id: str, expires_at: int) -> None:
        # entries are only needed until the token would have expired anyway
        self.db.query(RevokedToken).filter(RevokedToken.expires_at < int(time.time())).delete(
            synchronize_session=False
        )
        self.db.merge(RevokedToken(jti=jti, user_id=user_id, expires_at=int(expires_at)))
        self.db.commit()
