"""Payment API routes — payment log and checkout sessions."""

from typing import Optional

from fastapi import APIRouter, Depends, status

from app.application.services import access_policy, payment_service
from app.domain.gateways import PaymentProvider
from app.domain.models.user import User
from app.domain.repositories.payment_repository import PaymentRepository
from app.domain.schemas.payment import CheckoutRequest, CheckoutSession, PaymentCreate, PaymentRead
from app.interfaces.api.deps import get_current_user
from app.interfaces.deps import get_payment_provider, get_payment_repository

router = APIRouter(tags=["Payments"])


@router.get("/payments", response_model=list[PaymentRead])
def list_payments(
    email: Optional[str] = None,
    repo: PaymentRepository = Depends(get_payment_repository),
    user: User = Depends(get_current_user),
):
    """Admins see every payment; everyone else sees their own."""
    if user.role != "admin":
        access_policy.can_manage_account(user, email or user.email).enforce()
        email = user.email
    return [PaymentRead.model_validate(p) for p in payment_service.list_payments(repo, email)]


@router.post("/payments", response_model=PaymentRead, status_code=status.HTTP_201_CREATED)
def record_payment(
    body: PaymentCreate,
    repo: PaymentRepository = Depends(get_payment_repository),
    user: User = Depends(get_current_user),
):
    access_policy.can_manage_account(user, body.email).enforce()
    return PaymentRead.model_validate(payment_service.record_payment(repo, body))


@router.post("/create-checkout-session", response_model=CheckoutSession)
def create_checkout_session(
    body: CheckoutRequest,
    provider: PaymentProvider = Depends(get_payment_provider),
    user: User = Depends(get_current_user),
):
    email = body.email or user.email
    access_policy.can_manage_account(user, email).enforce()
    return payment_service.start_checkout(provider, email, body.purpose, body.issue_id)
