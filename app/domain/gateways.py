"""
External collaborator interfaces.
Identity provider, payment provider and photo storage are injected into the
services through these contracts.
"""

from typing import Any, Dict, Optional, Protocol

from pydantic import BaseModel

from app.domain.schemas.payment import CheckoutSession, PaymentCreate


class IdentityAccount(BaseModel):
    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    photo_url: Optional[str] = None


class IdentityProvider(Protocol):
    """Delegated authentication (account management and token checks)."""

    def create_account(
        self,
        email: str,
        password: str,
        display_name: Optional[str] = None,
        photo_url: Optional[str] = None,
    ) -> IdentityAccount:
        ...

    def get_by_email(self, email: str) -> Optional[IdentityAccount]:
        """None when no account exists for the email."""
        ...

    def update_account(self, uid: str, **attributes: Any) -> IdentityAccount:
        ...

    def delete_account(self, uid: str) -> None:
        ...

    def verify_token(self, token: str) -> Dict[str, Any]:
        """Return the token claims; raises UnauthorizedException when invalid."""
        ...


class PaymentProvider(Protocol):
    """Hosted checkout and payment confirmation."""

    def create_checkout_session(
        self,
        email: str,
        purpose: str,
        amount: int,
        issue_id: Optional[str] = None,
    ) -> CheckoutSession:
        ...

    def parse_webhook(self, payload: bytes, signature: str) -> Optional[PaymentCreate]:
        """Verify a webhook call; returns the completed payment, or None for other events."""
        ...


class BlobStore(Protocol):
    """Storage for uploaded photos."""

    def save(self, filename: str, content: bytes) -> str:
        """Persist the file and return a reference clients can fetch."""
        ...
