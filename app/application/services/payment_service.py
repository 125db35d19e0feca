"""Payment service — checkout sessions, the payment log and payment confirmation."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog

from app.application.services import issue_service, user_service
from app.config import get_settings
from app.core.exceptions import ConflictException, ValidationException
from app.domain.gateways import PaymentProvider
from app.domain.models.payment import Payment
from app.domain.repositories.issue_repository import IssueRepository
from app.domain.repositories.payment_repository import PaymentRepository
from app.domain.repositories.user_repository import UserRepository
from app.domain.schemas.payment import CheckoutSession, PaymentCreate

settings = get_settings()
logger = structlog.get_logger(__name__)


def price_for(purpose: str) -> int:
    return settings.BOOST_PRICE if purpose == "boost" else settings.PREMIUM_PRICE


def start_checkout(
    provider: PaymentProvider,
    email: str,
    purpose: str,
    issue_id: Optional[str] = None,
) -> CheckoutSession:
    if purpose == "boost" and not issue_id:
        raise ValidationException("issueId is required to boost an issue", details={"field": "issueId"})

    session = provider.create_checkout_session(
        email=email,
        purpose=purpose,
        amount=price_for(purpose),
        issue_id=issue_id,
    )
    logger.info("Checkout session created", email=email, purpose=purpose, session_id=session.id)
    return session


def record_payment(repo: PaymentRepository, data: PaymentCreate) -> Payment:
    """Append a payment to the log. Account flags are left untouched."""
    record = data.model_dump()
    record["created_at"] = datetime.now(timezone.utc)

    payment = repo.append(record)
    if payment is None:
        raise ConflictException(
            "Payment already recorded", details={"transaction_id": data.transaction_id}
        )
    logger.info(
        "Payment recorded",
        email=payment.email,
        amount=payment.amount,
        purpose=payment.purpose,
        transaction_id=payment.transaction_id,
    )
    return payment


def list_payments(repo: PaymentRepository, email: Optional[str] = None) -> List[Payment]:
    return repo.list(email)


def _unapplied_reason(users: UserRepository, issues: IssueRepository, data: PaymentCreate) -> Optional[str]:
    """Why the payment cannot be applied, or None when its target exists."""
    if data.purpose == "boost":
        if not data.issue_id or issues.get_by_id(data.issue_id) is None:
            return "issue_not_found"
        return None
    if users.get_by_email(data.email) is None:
        return "user_not_found"
    return None


def confirm_payment(
    payments: PaymentRepository,
    users: UserRepository,
    issues: IssueRepository,
    data: PaymentCreate,
) -> Dict[str, Any]:
    """Record a confirmed payment once and apply what was paid for.

    The paid-for account or issue is resolved before the payment is logged.
    A payment whose target is gone is still logged, marked unapplied, and
    acknowledged so the provider stops redelivering it.
    """
    if data.transaction_id and payments.get_by_transaction_id(data.transaction_id):
        logger.info("Payment already processed", transaction_id=data.transaction_id)
        return {"status": "already_processed"}

    reason = _unapplied_reason(users, issues, data)
    if reason:
        data = data.model_copy(update={"details": {**(data.details or {}), "unapplied": reason}})

    try:
        payment = record_payment(payments, data)
    except ConflictException:
        logger.info("Payment already processed", transaction_id=data.transaction_id)
        return {"status": "already_processed"}

    if reason:
        logger.warning(
            "Payment recorded but not applied",
            payment_id=payment.id,
            email=payment.email,
            purpose=payment.purpose,
            issue_id=payment.issue_id,
            reason=reason,
        )
        return {"status": "unapplied", "payment_id": payment.id, "reason": reason}

    if payment.purpose == "boost":
        issue_service.boost_issue(issues, payment.issue_id)
    else:
        user_service.set_premium(users, payment.email)

    return {"status": "processed", "payment_id": payment.id}
