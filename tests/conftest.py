import os

# Settings are read at import time, configure them before importing the app
os.environ["ENCODE_KEY"] = "test-encode-key-do-not-use-in-production"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SIWE_DOMAIN"] = "localhost:5173"
os.environ["DOC_PASSWORD"] = "docs-password"

from datetime import datetime, timezone
from typing import Callable, Generator

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from siwe import SiweMessage

from main import app
from app.db.base import Base
from app.db.session import get_db
from app.services.auth_service import AuthService, build_auth_service


# Create in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

TEST_DOMAIN = "localhost:5173"
# Well-known throwaway keys, never fund these
PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
OTHER_PRIVATE_KEY = "0x" + "11" * 32


@pytest.fixture(autouse=True)
def setup_database() -> Generator:
    """Fresh schema for every test"""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def override_get_db() -> Generator:
    """Override database dependency for testing"""
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()


@pytest.fixture
def client() -> TestClient:
    """Create a test client for the FastAPI application"""
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def auth_service(db_session: Session) -> AuthService:
    return build_auth_service(db_session)


@pytest.fixture
def wallet():
    """Wallet whose address is 0x2c7536E3605D9C16a7a3D7b1898e529396a65c23"""
    return Account.from_key(PRIVATE_KEY)


@pytest.fixture
def other_wallet():
    return Account.from_key(OTHER_PRIVATE_KEY)


@pytest.fixture
def siwe_message() -> Callable[..., str]:
    """Build EIP-4361 message text the way the frontend does"""

    def build(address: str, nonce: str, **overrides) -> str:
        fields = dict(
            domain=TEST_DOMAIN,
            address=address,
            statement="Sign in to SecureTickets",
            uri=f"http://{TEST_DOMAIN}",
            version="1",
            chain_id=1,
            nonce=nonce,
            issued_at=datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.000Z"),
        )
        fields.update(overrides)
        return SiweMessage(**fields).prepare_message()

    return build


@pytest.fixture
def sign_message() -> Callable[..., str]:
    """personal_sign a message, returning a 0x-prefixed hex signature"""

    def sign(account, text: str) -> str:
        signed = Account.sign_message(encode_defunct(text=text), private_key=account.key)
        return "0x" + bytes(signed.signature).hex()

    return sign


@pytest.fixture
def login(client: TestClient, wallet, siwe_message, sign_message) -> Callable[..., dict]:
    """Run the nonce + verify flow over HTTP and return the verify response body"""

    def run(account=None) -> dict:
        account = account or wallet
        nonce = client.post("/api/auth/nonce", json={"walletAddress": account.address}).json()["nonce"]
        message = siwe_message(account.address, nonce)
        response = client.post(
            "/api/auth/verify",
            json={"message": message, "signature": sign_message(account, message)},
        )
        assert response.status_code == 200, response.text
        return response.json()

    return run
