from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ledgerbook.sales.schemas import DocumentLineCreate, DocumentLineResponse


class SalesOrderCreate(BaseModel):
    customer_id: Optional[int] = None
    order_date: date
    expected_delivery_date: Optional[date] = None
    payment_terms: str = Field("CASH", max_length=20)
    notes: Optional[str] = None
    lines: List[DocumentLineCreate]


class SalesOrderUpdate(BaseModel):
    customer_id: Optional[int] = None
    order_date: Optional[date] = None
    expected_delivery_date: Optional[date] = None
    payment_terms: Optional[str] = Field(None, max_length=20)
    notes: Optional[str] = None
    lines: Optional[List[DocumentLineCreate]] = None


class SalesOrderCancel(BaseModel):
    reason: Optional[str] = None


class SalesOrderInvoiceCreate(BaseModel):
    invoice_date: Optional[date] = None


class SalesOrderListResponse(BaseModel):
    id: int
    order_no: str
    customer_id: int
    customer_name: str
    order_date: date
    payment_terms: str
    status: str
    grand_total: Decimal
    invoice_id: Optional[int] = None


class SalesOrderResponse(BaseModel):
    id: int
    order_no: str
    customer_id: int
    order_date: date
    expected_delivery_date: Optional[date] = None
    payment_terms: str
    status: str
    subtotal: Decimal
    total_discount: Decimal
    total_tax: Decimal
    grand_total: Decimal
    invoice_id: Optional[int] = None
    notes: Optional[str] = None
    confirmed_at: Optional[datetime] = None
    invoiced_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    created_at: datetime
    lines: List[DocumentLineResponse]

    model_config = ConfigDict(from_attributes=True)
