"""Payment provider webhook — confirms completed checkouts."""

import structlog
from fastapi import APIRouter, Depends, Header, Request

from app.application.services import payment_service
from app.domain.gateways import PaymentProvider
from app.domain.repositories.issue_repository import IssueRepository
from app.domain.repositories.payment_repository import PaymentRepository
from app.domain.repositories.user_repository import UserRepository
from app.interfaces.deps import (
    get_issue_repository,
    get_payment_provider,
    get_payment_repository,
    get_user_repository,
)

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/payments", tags=["Webhooks"])


@router.post("/webhook")
async def payment_webhook(
    request: Request,
    stripe_signature: str = Header("", alias="Stripe-Signature"),
    provider: PaymentProvider = Depends(get_payment_provider),
    payments: PaymentRepository = Depends(get_payment_repository),
    users: UserRepository = Depends(get_user_repository),
    issues: IssueRepository = Depends(get_issue_repository),
):
    """
    Receive checkout events from the payment provider.
    A completed checkout is logged once, then upgrades the payer to premium
    or boosts the paid-for issue.
    """
    payload = await request.body()
    confirmed = provider.parse_webhook(payload, stripe_signature)
    if confirmed is None:
        return {"status": "ignored"}

    return payment_service.confirm_payment(payments, users, issues, confirmed)
