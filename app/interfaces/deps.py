"""
API Dependencies — repositories and external gateways.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from app.config import get_settings
from app.domain.gateways import BlobStore, IdentityProvider, PaymentProvider
from app.domain.models.issue import Issue
from app.domain.models.user import User
from app.domain.repositories.issue_repository import IssueRepository
from app.domain.repositories.payment_repository import PaymentRepository
from app.domain.repositories.user_repository import UserRepository
from app.infrastructure.blob_store import LocalBlobStore
from app.infrastructure.database import get_db
from app.infrastructure.firebase_identity import FirebaseIdentityProvider
from app.infrastructure.repositories.issue_repository import SQLAlchemyIssueRepository
from app.infrastructure.repositories.payment_repository import SQLAlchemyPaymentRepository
from app.infrastructure.repositories.user_repository import SQLAlchemyUserRepository
from app.infrastructure.stripe_payments import StripePaymentProvider

settings = get_settings()


def get_issue_repository(db: Session = Depends(get_db)) -> IssueRepository:
    """Get issue repository instance."""
    return SQLAlchemyIssueRepository(db, Issue)


def get_user_repository(db: Session = Depends(get_db)) -> UserRepository:
    """Get user repository instance."""
    return SQLAlchemyUserRepository(db, User)


def get_payment_repository(db: Session = Depends(get_db)) -> PaymentRepository:
    """Get payment log instance."""
    return SQLAlchemyPaymentRepository(db)


@lru_cache
def get_identity_provider() -> IdentityProvider:
    return FirebaseIdentityProvider(settings.FIREBASE_ADMIN_KEY)


@lru_cache
def get_payment_provider() -> PaymentProvider:
    return StripePaymentProvider(
        secret_key=settings.STRIPE_SECRET_KEY,
        webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
        currency=settings.PAYMENT_CURRENCY,
        client_url=settings.CLIENT_URL,
    )


def get_blob_store() -> BlobStore:
    return LocalBlobStore(settings.UPLOAD_DIR, settings.UPLOAD_URL_PREFIX)
