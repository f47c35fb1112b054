"""
Identity store: persistent mapping from wallet address to identity record.

Every lookup normalizes the address first, so callers never compare raw-cased
addresses. Writes that race on the same record go through single conditional
UPDATE statements, and creation races are settled by the unique constraint on
users.wallet_address.
"""

from datetime import datetime, timezone
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.eth_auth import NONCE_LENGTH, generate_nonce, normalize_address
from app.core.logger import get_logger
from app.models.users import User

logger = get_logger(__name__)


class IdentityStore:
    def __init__(self, db: Session, nonce_length: int = NONCE_LENGTH):
        self.db = db
        self.nonce_length = nonce_length

    def find_by_address(self, address: str) -> Optional[User]:
        address = normalize_address(address)
        return self.db.query(User).filter(User.wallet_address == address).first()

    def find_by_id(self, user_id: str) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_or_create(self, address: str) -> Tuple[User, bool]:
        """
        Return the record for ``address``, creating it with a fresh nonce if absent.

        Returns:
            (user, created)
        """
        address = normalize_address(address)
        user = self.find_by_address(address)
        if user:
            return user, False

        user = User(
            wallet_address=address,
            nonce=generate_nonce(self.nonce_length),
            nonce_issued_at=int(datetime.now(timezone.utc).timestamp()),
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            # another request created the same address first
            self.db.rollback()
            user = self.find_by_address(address)
            if user is None:
                raise
            return user, False

        self.db.refresh(user)
        logger.info("Created identity for %s", address)
        return user, True

    def save(self, user: User) -> User:
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def set_nonce(self, address: str, nonce: str, now: Optional[datetime] = None) -> bool:
        """Overwrite the stored nonce. Returns False when no record exists."""
        address = normalize_address(address)
        now = now or datetime.now(timezone.utc)
        updated = (
            self.db.query(User)
            .filter(User.wallet_address == address)
            .update(
                {User.nonce: nonce, User.nonce_issued_at: int(now.timestamp())},
                synchronize_session=False,
            )
        )
        self.db.commit()
        return updated == 1

    def consume_nonce(self, user_id: str, expected_nonce: str, new_nonce: str, now: Optional[datetime] = None) -> bool:
        """
        Atomically replace ``expected_nonce`` with ``new_nonce`` and stamp the login.

        Returns False if the stored nonce no longer equals ``expected_nonce``,
        i.e. a concurrent sign-in already consumed it.
        """
        now = now or datetime.now(timezone.utc)
        updated = (
            self.db.query(User)
            .filter(User.id == user_id, User.nonce == expected_nonce)
            .update(
                {
                    User.nonce: new_nonce,
                    User.nonce_issued_at: int(now.timestamp()),
                    User.last_login_at: now,
                },
                synchronize_session=False,
            )
        )
        self.db.commit()
        return updated == 1
