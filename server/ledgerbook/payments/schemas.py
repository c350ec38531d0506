from datetime import date, datetime
from decimal import Decimal
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


PaymentType = Literal["RECEIPT", "PAYMENT"]


class PaymentCreate(BaseModel):
    payment_type: PaymentType
    payment_date: Optional[date] = None
    customer_id: Optional[int] = None
    vendor_id: Optional[int] = None
    # Amount stays loose so the service reports it alongside the other field errors.
    amount: Any = None
    payment_method: str = "CASH"
    account_id: Optional[int] = None
    reference: Optional[str] = Field(None, max_length=100)
    sales_invoice_id: Optional[int] = None
    purchase_invoice_id: Optional[int] = None
    notes: Optional[str] = None


class PaymentUpdate(BaseModel):
    payment_date: Optional[date] = None
    customer_id: Optional[int] = None
    vendor_id: Optional[int] = None
    amount: Any = None
    payment_method: Optional[str] = None
    account_id: Optional[int] = None
    reference: Optional[str] = Field(None, max_length=100)
    sales_invoice_id: Optional[int] = None
    purchase_invoice_id: Optional[int] = None
    notes: Optional[str] = None


class PaymentCancel(BaseModel):
    reason: Optional[str] = None


class PaymentResponse(BaseModel):
    id: int
    payment_no: str
    payment_type: str
    payment_date: date
    customer_id: Optional[int] = None
    vendor_id: Optional[int] = None
    party_name: Optional[str] = None
    amount: Decimal
    payment_method: str
    account_id: int
    reference: Optional[str] = None
    sales_invoice_id: Optional[int] = None
    purchase_invoice_id: Optional[int] = None
    status: str
    journal_entry_id: Optional[int] = None
    notes: Optional[str] = None
    posted_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
