from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, condecimal

from ledgerbook.sales.schemas import DocumentLineCreate, DocumentLineResponse


DecimalValue = condecimal(max_digits=14, decimal_places=2)


class VendorBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    ntn: Optional[str] = Field(None, max_length=20)
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    is_active: bool = True


class VendorCreate(VendorBase):
    pass


class VendorUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    ntn: Optional[str] = Field(None, max_length=20)
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    is_active: Optional[bool] = None


class VendorResponse(VendorBase):
    id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PurchaseOrderCreate(BaseModel):
    vendor_id: Optional[int] = None
    order_date: date
    expected_date: Optional[date] = None
    notes: Optional[str] = None
    lines: List[DocumentLineCreate]


class PurchaseOrderUpdate(BaseModel):
    vendor_id: Optional[int] = None
    order_date: Optional[date] = None
    expected_date: Optional[date] = None
    notes: Optional[str] = None
    lines: Optional[List[DocumentLineCreate]] = None


class PurchaseOrderLineResponse(DocumentLineResponse):
    qty_received: Decimal


class PurchaseOrderListResponse(BaseModel):
    id: int
    order_number: str
    vendor_name: str
    order_date: date
    status: str
    total_amount: Decimal


class PurchaseOrderResponse(BaseModel):
    id: int
    order_number: str
    vendor_id: int
    order_date: date
    expected_date: Optional[date] = None
    status: str
    subtotal: Decimal
    total_discount: Decimal
    total_tax: Decimal
    total_amount: Decimal
    notes: Optional[str] = None
    approved_at: Optional[datetime] = None
    sent_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    created_at: datetime
    lines: List[PurchaseOrderLineResponse]

    model_config = ConfigDict(from_attributes=True)


class PurchaseOrderReceiveLine(BaseModel):
    line_id: int
    qty_received: DecimalValue


class PurchaseOrderReceive(BaseModel):
    lines: List[PurchaseOrderReceiveLine] = Field(..., min_length=1)
