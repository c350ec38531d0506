from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ledgerbook.sales.schemas import DecimalValue, DocumentLineCreate, DocumentLineResponse


class PurchaseInvoiceCreate(BaseModel):
    vendor_id: Optional[int] = None
    vendor_invoice_number: Optional[str] = Field(None, max_length=50)
    invoice_date: date
    due_date: Optional[date] = None
    debit_account_id: Optional[int] = None
    notes: Optional[str] = None
    lines: List[DocumentLineCreate]


class PurchaseInvoiceUpdate(BaseModel):
    vendor_id: Optional[int] = None
    vendor_invoice_number: Optional[str] = Field(None, max_length=50)
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    debit_account_id: Optional[int] = None
    notes: Optional[str] = None
    lines: Optional[List[DocumentLineCreate]] = None


class BillFromPurchaseOrder(BaseModel):
    vendor_invoice_number: Optional[str] = Field(None, max_length=50)
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    debit_account_id: Optional[int] = None
    notes: Optional[str] = None


class BillPaymentCreate(BaseModel):
    amount: DecimalValue = Field(..., gt=0)
    payment_date: Optional[date] = None
    reference: Optional[str] = Field(None, max_length=100)
    account_id: Optional[int] = None


class PurchaseInvoiceCancel(BaseModel):
    reason: Optional[str] = None


class PurchaseInvoiceListResponse(BaseModel):
    id: int
    invoice_no: str
    vendor_invoice_number: Optional[str] = None
    vendor_id: int
    vendor_name: str
    invoice_date: date
    due_date: date
    status: str
    grand_total: Decimal
    amount_due: Decimal


class PurchaseInvoiceResponse(BaseModel):
    id: int
    invoice_no: str
    vendor_invoice_number: Optional[str] = None
    vendor_id: int
    purchase_order_id: Optional[int] = None
    invoice_date: date
    due_date: date
    status: str
    subtotal: Decimal
    total_discount: Decimal
    total_tax: Decimal
    grand_total: Decimal
    amount_paid: Decimal
    amount_due: Decimal
    debit_account_id: Optional[int] = None
    journal_entry_id: Optional[int] = None
    notes: Optional[str] = None
    posted_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    created_at: datetime
    lines: List[DocumentLineResponse]

    model_config = ConfigDict(from_attributes=True)
