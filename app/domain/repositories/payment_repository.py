"""
Payment Repository Interface.
Payments are append-only: there is no update or delete.
"""

from typing import Any, List, Optional, Protocol

from app.domain.models.payment import Payment


class PaymentRepository(Protocol):
    """Interface for the payment log."""

    def append(self, obj_in: Any) -> Optional[Payment]:
        """Insert a payment record; None when its transaction id is already logged."""
        ...

    def get_by_transaction_id(self, transaction_id: str) -> Optional[Payment]:
        """Look up a payment by the provider's transaction id."""
        ...

    def list(self, email: Optional[str] = None) -> List[Payment]:
        """List payments newest first, optionally for one payer."""
        ...
