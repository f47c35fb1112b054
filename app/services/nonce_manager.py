from datetime import datetime, timezone

from app.core.errors import UserNotFound
from app.core.eth_auth import NONCE_LENGTH, generate_nonce
from app.core.logger import get_logger
from app.services.identity_store import IdentityStore

logger = get_logger(__name__)


class NonceManager:
    """Issues and rotates the single-use challenge stored on each identity record."""

    def __init__(self, store: IdentityStore, nonce_length: int = NONCE_LENGTH):
        self.store = store
        self.nonce_length = nonce_length

    def issue(self, address: str) -> str:
        """
        Return a new nonce for ``address``, creating the identity on first use.

        The previous nonce stops being valid as soon as this returns.
        """
        user, created = self.store.get_or_create(address)
        if created:
            return user.nonce
        return self.rotate(address)

    def rotate(self, address: str) -> str:
        nonce = generate_nonce(self.nonce_length)
        if not self.store.set_nonce(address, nonce, datetime.now(timezone.utc)):
            raise UserNotFound()
        logger.debug("Rotated nonce for %s", address.lower())
        return nonce
