"""
SQLAlchemy Implementation of Payment Repository.
"""

from typing import Any, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.domain.models.payment import Payment
from app.domain.repositories.payment_repository import PaymentRepository
from app.infrastructure.repositories.base_repository import as_dict


class SQLAlchemyPaymentRepository(PaymentRepository):
    """Append-only payment log backed by the 'payments' table."""

    def __init__(self, db: Session):
        self.db = db

    def append(self, obj_in: Any) -> Optional[Payment]:
        payment = Payment(**as_dict(obj_in))
        self.db.add(payment)
        try:
            self.db.commit()
        except IntegrityError:
            # A concurrent delivery already logged this transaction_id
            self.db.rollback()
            return None

        self.db.refresh(payment)
        return payment

    def get_by_transaction_id(self, transaction_id: str) -> Optional[Payment]:
        return self.db.query(Payment).filter(Payment.transaction_id == transaction_id).first()

    def list(self, email: Optional[str] = None) -> List[Payment]:
        query = self.db.query(Payment)
        if email:
            query = query.filter(Payment.email == email)
        return query.order_by(Payment.created_at.desc(), Payment.id.desc()).all()
