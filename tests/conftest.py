import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["ADMIN_EMAIL"] = ""
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret"

import hashlib
import hmac
import time
from collections.abc import Iterator
from typing import Any, Dict, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.exceptions import ConflictException, EntityNotFoundException, UnauthorizedException
from app.domain.gateways import IdentityAccount
from app.domain.models.issue import Issue
from app.domain.models.user import User
from app.domain.schemas.payment import CheckoutSession
from app.infrastructure.database import Base, get_db
from app.infrastructure.repositories.issue_repository import SQLAlchemyIssueRepository
from app.infrastructure.repositories.payment_repository import SQLAlchemyPaymentRepository
from app.infrastructure.repositories.user_repository import SQLAlchemyUserRepository
from app.infrastructure.stripe_payments import StripePaymentProvider
from app.interfaces.deps import get_blob_store, get_identity_provider, get_payment_provider
from app.main import app

WEBHOOK_SECRET = "whsec_test_secret"


class FakeIdentityProvider:
    """In-memory identity provider. A bearer token is simply the account email."""

    def __init__(self):
        self.accounts: Dict[str, IdentityAccount] = {}
        self.passwords: Dict[str, str] = {}
        self.updates: list[tuple[str, Dict[str, Any]]] = []
        self.deleted: list[str] = []

    def create_account(self, email, password, display_name=None, photo_url=None):
        if email in self.accounts:
            raise ConflictException("Email already registered with the identity provider")
        account = IdentityAccount(
            uid=f"uid-{len(self.accounts) + 1}",
            email=email,
            display_name=display_name,
            photo_url=photo_url,
        )
        self.accounts[email] = account
        self.passwords[account.uid] = password
        return account

    def get_by_email(self, email):
        return self.accounts.get(email)

    def _by_uid(self, uid) -> Optional[IdentityAccount]:
        return next((a for a in self.accounts.values() if a.uid == uid), None)

    def update_account(self, uid, **attributes):
        account = self._by_uid(uid)
        if account is None:
            raise EntityNotFoundException("Identity account not found")
        self.updates.append((uid, dict(attributes)))
        password = attributes.pop("password", None)
        if password:
            self.passwords[uid] = password
        updated = account.model_copy(update=attributes)
        self.accounts[updated.email] = updated
        return updated

    def delete_account(self, uid):
        account = self._by_uid(uid)
        if account is not None:
            del self.accounts[account.email]
        self.deleted.append(uid)

    def verify_token(self, token):
        if "@" not in token:
            raise UnauthorizedException("Invalid or expired token")
        account = self.accounts.get(token)
        return {"email": token, "uid": account.uid if account else f"uid-{token}"}


class FakePaymentProvider(StripePaymentProvider):
    """Real webhook verification, canned checkout sessions."""

    def __init__(self):
        super().__init__(
            secret_key="sk_test",
            webhook_secret=WEBHOOK_SECRET,
            currency="bdt",
            client_url="http://localhost:5173",
        )
        self.sessions: list[Dict[str, Any]] = []

    def create_checkout_session(self, email, purpose, amount, issue_id=None):
        self.sessions.append({"email": email, "purpose": purpose, "amount": amount, "issue_id": issue_id})
        session_id = f"cs_test_{len(self.sessions)}"
        return CheckoutSession(id=session_id, url=f"https://checkout.stripe.test/{session_id}")


class FakeBlobStore:
    def __init__(self):
        self.files: Dict[str, bytes] = {}

    def save(self, filename, content):
        self.files[filename] = content
        return f"/uploads/{filename}"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def issue_repo(db_session):
    return SQLAlchemyIssueRepository(db_session, Issue)


@pytest.fixture
def user_repo(db_session):
    return SQLAlchemyUserRepository(db_session, User)


@pytest.fixture
def payment_repo(db_session):
    return SQLAlchemyPaymentRepository(db_session)


@pytest.fixture
def make_user(user_repo):
    """Insert a local account and return it."""

    def _make_user(email: str, role: str = "citizen", **fields) -> User:
        data = {
            "email": email,
            "name": email.split("@")[0].title(),
            "role": role,
            "is_premium": False,
            "is_blocked": False,
        }
        data.update(fields)
        return user_repo.create(data)

    return _make_user


@pytest.fixture
def identity() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def payment_provider() -> FakePaymentProvider:
    return FakePaymentProvider()


@pytest.fixture
def blob_store() -> FakeBlobStore:
    return FakeBlobStore()


@pytest.fixture
def client(session_factory, identity, payment_provider, blob_store) -> Iterator[TestClient]:
    def override_get_db() -> Iterator[Session]:
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_identity_provider] = lambda: identity
    app.dependency_overrides[get_payment_provider] = lambda: payment_provider
    app.dependency_overrides[get_blob_store] = lambda: blob_store

    yield TestClient(app)

    app.dependency_overrides.clear()


def auth(email: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {email}"}


def stripe_signature(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None) -> str:
    """Build a Stripe-Signature header the way Stripe signs webhook calls."""
    timestamp = timestamp or int(time.time())
    signed = f"{timestamp}.{payload.decode('utf-8')}".encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"
