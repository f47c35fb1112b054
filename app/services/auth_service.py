"""
Sign-in flow and session authentication.

State machine per identity:

    Unauthenticated -> NonceIssued -> Verifying -> Authenticated

Any failure while Verifying leaves the stored nonce untouched; success
rotates it, so a captured (message, signature) pair cannot be replayed.
"""

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import BadRequest, InvalidNonce, Unauthorized, UserNotFound
from app.core.eth_auth import SiweVerifier, generate_nonce, normalize_address
from app.core.jwt_utils import TokenService, get_token_service
from app.core.logger import get_logger
from app.models.users import User
from app.services.identity_store import IdentityStore
from app.services.nonce_manager import NonceManager
from app.services.token_denylist import TokenDenylist

logger = get_logger(__name__)


@dataclass
class SignInResult:
    token: str
    user: User


class AuthService:
    def __init__(
        self,
        store: IdentityStore,
        nonce_manager: NonceManager,
        verifier: SiweVerifier,
        token_service: TokenService,
        denylist: TokenDenylist,
        nonce_expiry_seconds: Optional[int] = None,
    ):
        self.store = store
        self.nonce_manager = nonce_manager
        self.verifier = verifier
        self.token_service = token_service
        self.denylist = denylist
        self.nonce_expiry_seconds = nonce_expiry_seconds

    def request_nonce(self, wallet_address: Optional[str]) -> str:
        if not wallet_address:
            raise BadRequest("Wallet address is required")
        try:
            address = normalize_address(wallet_address)
        except ValueError:
            raise BadRequest("Invalid wallet address")

        nonce = self.nonce_manager.issue(address)
        logger.info("Issued nonce for %s", address)
        return nonce

    def sign_in(self, message: Optional[str], signature: Optional[str]) -> SignInResult:
        """
        Verify a signed sign-in message and open a session.

        Raises:
            BadRequest: message or signature missing
            MalformedMessage / InvalidSignature: verification failed
            UserNotFound: no nonce was ever requested for the signer
            InvalidNonce: nonce stale, expired, or consumed concurrently
        """
        if not message or not signature:
            raise BadRequest("Message and signature are required")

        verified = self.verifier.verify(message, signature)

        user = self.store.find_by_address(verified.address)
        if not user:
            logger.warning("Sign-in for unknown address %s", verified.address)
            raise UserNotFound()

        if user.nonce != verified.nonce:
            logger.warning("Nonce mismatch for %s", verified.address)
            raise InvalidNonce()

        if self.nonce_expiry_seconds and user.nonce_issued_at + self.nonce_expiry_seconds < int(time.time()):
            logger.warning("Expired nonce for %s", verified.address)
            raise InvalidNonce("Nonce expired")

        now = datetime.now(timezone.utc)
        if not self.store.consume_nonce(user.id, verified.nonce, generate_nonce(self.nonce_manager.nonce_length), now):
            logger.warning("Nonce for %s consumed by a concurrent sign-in", verified.address)
            raise InvalidNonce()

        user = self.store.find_by_id(user.id)
        token = self.token_service.issue_token(user)
        logger.info("Signed in %s", user.wallet_address)
        return SignInResult(token=token, user=user)

    def authenticate(self, token: Optional[str]) -> User:
        """
        Resolve a bearer token to its identity record.

        Every failure surfaces as the same Unauthorized error.
        """
        claims = self.token_service.decode_token(token)

        if self.denylist.is_revoked(claims["jti"]):
            logger.debug("Rejected revoked token for %s", claims["wallet_address"])
            raise Unauthorized()

        user = self.store.find_by_id(claims["user_id"])
        if not user or user.wallet_address != str(claims["wallet_address"]).lower():
            logger.debug("Token identity %s no longer resolves", claims["user_id"])
            raise Unauthorized()
        return user

    def update_profile(self, user: User, name: Optional[str] = None, email: Optional[str] = None) -> User:
        """Merge profile fields; a missing or empty value leaves the field unchanged."""
        if name:
            user.name = name
        if email:
            user.email = email
        return self.store.save(user)

    def logout(self, token: Optional[str]) -> None:
        user = self.authenticate(token)
        claims = self.token_service.decode_token(token)
        self.denylist.revoke(claims["jti"], user.id, claims["exp"])
        logger.info("Revoked session for %s", user.wallet_address)


def build_auth_service(db: Session) -> AuthService:
    """Wire the auth components around one database session."""
    store = IdentityStore(db, nonce_length=settings.NONCE_LENGTH)
    return AuthService(
        store=store,
        nonce_manager=NonceManager(store, nonce_length=settings.NONCE_LENGTH),
        verifier=SiweVerifier(expected_domain=settings.SIWE_DOMAIN),
        token_service=get_token_service(),
        denylist=TokenDenylist(db),
        nonce_expiry_seconds=settings.NONCE_EXPIRY_SECONDS,
    )
