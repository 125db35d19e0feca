"""Payment log — one row per completed payment, never updated."""

from sqlalchemy import JSON, Column, DateTime, Float, Integer, String

from app.infrastructure.database import Base


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, index=True)
    amount = Column(Float, nullable=False, default=0)
    currency = Column(String(10), nullable=True)
    purpose = Column(String(50), nullable=False, default="subscription")  # subscription, boost
    issue_id = Column(String(32), nullable=True)
    transaction_id = Column(String(255), unique=True, nullable=True)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return f"<Payment {self.email} - {self.amount} {self.currency}>"
