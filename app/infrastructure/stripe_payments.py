"""Stripe Checkout client (payment provider)."""

from typing import Optional

import stripe
import structlog

from app.core.exceptions import UnauthorizedException, UpstreamServiceException, ValidationException
from app.domain.schemas.payment import CheckoutSession, PaymentCreate

logger = structlog.get_logger(__name__)

PRODUCT_NAMES = {
    "subscription": "UrbanFix Premium",
    "boost": "UrbanFix Issue Boost",
}


class StripePaymentProvider:
    """PaymentProvider backed by Stripe Checkout and signed webhooks."""

    def __init__(self, secret_key: str, webhook_secret: str, currency: str, client_url: str):
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret
        self.currency = currency
        self.client_url = client_url.rstrip("/")

    def create_checkout_session(
        self,
        email: str,
        purpose: str,
        amount: int,
        issue_id: Optional[str] = None,
    ) -> CheckoutSession:
        if not self.secret_key:
            raise UpstreamServiceException("Payment provider is not configured")

        metadata = {"email": email, "purpose": purpose}
        if issue_id:
            metadata["issue_id"] = issue_id

        try:
            session = stripe.checkout.Session.create(
                api_key=self.secret_key,
                mode="payment",
                customer_email=email,
                line_items=[
                    {
                        "price_data": {
                            "currency": self.currency,
                            "unit_amount": amount * 100,
                            "product_data": {"name": PRODUCT_NAMES.get(purpose, purpose)},
                        },
                        "quantity": 1,
                    }
                ],
                metadata=metadata,
                success_url=f"{self.client_url}/payment-success?session_id={{CHECKOUT_SESSION_ID}}",
                cancel_url=f"{self.client_url}/payment-cancelled",
            )
        except stripe.StripeError as e:
            logger.error("Stripe checkout failed", email=email, purpose=purpose, error=str(e))
            raise UpstreamServiceException("Payment provider unavailable") from e

        return CheckoutSession(id=session.id, url=session.url)

    def parse_webhook(self, payload: bytes, signature: str) -> Optional[PaymentCreate]:
        if not self.webhook_secret:
            raise UpstreamServiceException("Payment webhook is not configured")

        try:
            event = stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as e:
            raise UnauthorizedException("Invalid webhook signature") from e
        except ValueError as e:
            raise ValidationException("Malformed webhook payload") from e

        if event.get("type") != "checkout.session.completed":
            logger.info("Ignoring Stripe event", event_type=event.get("type"))
            return None

        session = event["data"]["object"]
        metadata = session.get("metadata") or {}
        email = (
            metadata.get("email")
            or session.get("customer_email")
            or (session.get("customer_details") or {}).get("email")
        )
        if not email:
            raise ValidationException("Checkout session has no payer email", details={"session_id": session.get("id")})

        return PaymentCreate(
            email=email,
            amount=(session.get("amount_total") or 0) / 100,
            currency=session.get("currency"),
            purpose=metadata.get("purpose", "subscription"),
            issue_id=metadata.get("issue_id"),
            transaction_id=session.get("id"),
            details={"event_id": event.get("id"), "payment_intent": session.get("payment_intent")},
        )
