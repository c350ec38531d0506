from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, condecimal


DecimalValue = condecimal(max_digits=14, decimal_places=2)
PercentValue = condecimal(ge=0, le=100, max_digits=5, decimal_places=2)


class CustomerBase(BaseModel):
    code: Optional[str] = Field(None, max_length=50)
    name: str = Field(..., min_length=1, max_length=200)
    ntn: Optional[str] = Field(None, max_length=20)
    strn: Optional[str] = Field(None, max_length=20)
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    is_active: bool = True


class CustomerCreate(CustomerBase):
    pass


class CustomerUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    ntn: Optional[str] = Field(None, max_length=20)
    strn: Optional[str] = Field(None, max_length=20)
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    is_active: Optional[bool] = None


class CustomerResponse(CustomerBase):
    id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ItemBase(BaseModel):
    sku: Optional[str] = None
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    unit_price: DecimalValue = Field(..., ge=0)
    purchase_price: DecimalValue = Field(Decimal("0.00"), ge=0)
    tax_percentage: PercentValue = Decimal("0")
    hs_code: Optional[str] = Field(None, max_length=20)
    is_active: bool = True


class ItemCreate(ItemBase):
    pass


class ItemUpdate(BaseModel):
    sku: Optional[str] = None
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    unit_price: Optional[DecimalValue] = Field(None, ge=0)
    purchase_price: Optional[DecimalValue] = Field(None, ge=0)
    tax_percentage: Optional[PercentValue] = None
    hs_code: Optional[str] = Field(None, max_length=20)
    is_active: Optional[bool] = None


class ItemResponse(ItemBase):
    id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DocumentLineCreate(BaseModel):
    """Numeric fields stay loose here; the line validator reports each bad field by path."""

    item_id: Optional[int] = None
    description: Optional[str] = None
    quantity: Any = None
    unit_price: Any = None
    discount_percentage: Any = None
    tax_percentage: Any = None


class DocumentLineResponse(BaseModel):
    id: int
    line_no: int
    item_id: Optional[int] = None
    description: Optional[str] = None
    quantity: Decimal
    unit_price: Decimal
    discount_percentage: Decimal
    discount_amount: Decimal
    tax_percentage: Decimal
    tax_amount: Decimal
    line_total: Decimal

    model_config = ConfigDict(from_attributes=True)


class SalesInvoiceCreate(BaseModel):
    customer_id: Optional[int] = None
    invoice_date: date
    due_date: Optional[date] = None
    notes: Optional[str] = None
    lines: List[DocumentLineCreate]


class SalesInvoiceUpdate(BaseModel):
    customer_id: Optional[int] = None
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    notes: Optional[str] = None
    lines: Optional[List[DocumentLineCreate]] = None


class SalesInvoiceListResponse(BaseModel):
    id: int
    invoice_no: str
    customer_id: int
    customer_name: str
    invoice_date: date
    due_date: date
    status: str
    grand_total: Decimal
    amount_due: Decimal


class SalesInvoiceResponse(BaseModel):
    id: int
    invoice_no: str
    customer_id: int
    invoice_date: date
    due_date: date
    status: str
    subtotal: Decimal
    total_discount: Decimal
    total_tax: Decimal
    grand_total: Decimal
    amount_paid: Decimal
    amount_due: Decimal
    journal_entry_id: Optional[int] = None
    notes: Optional[str] = None
    posted_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    created_at: datetime
    lines: List[DocumentLineResponse]

    model_config = ConfigDict(from_attributes=True)


class InvoicePaymentCreate(BaseModel):
    amount: DecimalValue = Field(..., gt=0)
    payment_date: Optional[date] = None
    reference: Optional[str] = Field(None, max_length=50)


class InvoiceCancel(BaseModel):
    reason: Optional[str] = None


class LineItemPreviewRequest(BaseModel):
    lines: List[DocumentLineCreate]


class LineAmountsResponse(BaseModel):
    gross_amount: Decimal
    discount_amount: Decimal
    taxable_amount: Decimal
    tax_amount: Decimal
    line_total: Decimal


class DocumentTotalsResponse(BaseModel):
    subtotal: Decimal
    total_discount: Decimal
    total_tax: Decimal
    grand_total: Decimal


class LineItemPreviewResponse(BaseModel):
    lines: List[LineAmountsResponse]
    totals: DocumentTotalsResponse
