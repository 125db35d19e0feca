"""Pydantic schemas for payments and checkout."""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

PaymentPurpose = Literal["subscription", "boost"]


class PaymentCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(min_length=3)
    amount: float = Field(ge=0)
    currency: Optional[str] = None
    purpose: PaymentPurpose = "subscription"
    issue_id: Optional[str] = Field(default=None, alias="issueId")
    transaction_id: Optional[str] = Field(default=None, alias="transactionId")
    details: Optional[dict[str, Any]] = None


class PaymentRead(BaseModel):
    id: int
    email: str
    amount: float
    currency: Optional[str] = None
    purpose: str
    issue_id: Optional[str] = None
    transaction_id: Optional[str] = None
    details: Optional[dict[str, Any]] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class CheckoutRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: Optional[str] = None
    purpose: PaymentPurpose = "subscription"
    issue_id: Optional[str] = Field(default=None, alias="issueId")


class CheckoutSession(BaseModel):
    id: str
    url: str
