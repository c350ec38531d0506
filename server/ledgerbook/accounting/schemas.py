from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, condecimal


JournalEntryType = Literal["SALES", "PURCHASE", "PAYMENT", "RECEIPT", "ADJUSTMENT", "PAYROLL", "MANUAL"]
JournalStatusValue = Literal["DRAFT", "POSTED", "REVERSED", "DELETED"]
DecimalValue = condecimal(max_digits=14, decimal_places=2)


class JournalLineCreate(BaseModel):
    account_id: Optional[int] = None
    debit: DecimalValue = Decimal("0.00")
    credit: DecimalValue = Decimal("0.00")
    description: Optional[str] = Field(None, max_length=255)


class JournalEntryCreate(BaseModel):
    entry_date: date
    entry_type: JournalEntryType = "MANUAL"
    description: str = Field(..., min_length=3, max_length=500)
    reference_type: Optional[str] = None
    reference_no: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=1000)
    # Line and balance rules are enforced by the posting module so the
    # response can report per-line errors separately from the balance error.
    lines: List[JournalLineCreate]


class JournalEntryUpdate(BaseModel):
    entry_date: Optional[date] = None
    entry_type: Optional[JournalEntryType] = None
    description: Optional[str] = Field(None, min_length=3, max_length=500)
    reference_type: Optional[str] = None
    reference_no: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=1000)
    lines: Optional[List[JournalLineCreate]] = None


class JournalEntryReverse(BaseModel):
    reversal_date: Optional[date] = None


class BalanceCheckRequest(BaseModel):
    lines: List[JournalLineCreate]


class JournalLineErrorResponse(BaseModel):
    line_no: Optional[int] = None
    message: str


class BalanceCheckResponse(BaseModel):
    is_balanced: bool
    total_debit: Decimal
    total_credit: Decimal
    difference: Decimal
    line_errors: List[JournalLineErrorResponse]


class JournalLineResponse(BaseModel):
    id: int
    line_no: int
    account_id: int
    description: Optional[str] = None
    debit: Decimal
    credit: Decimal

    model_config = ConfigDict(from_attributes=True)


class JournalEntryResponse(BaseModel):
    id: int
    entry_no: str
    entry_date: date
    entry_type: str
    description: str
    reference_type: Optional[str] = None
    reference_id: Optional[int] = None
    reference_no: Optional[str] = None
    status: JournalStatusValue
    total_debit: Decimal
    total_credit: Decimal
    is_reversal: bool
    reversed_entry_id: Optional[int] = None
    notes: Optional[str] = None
    posted_at: Optional[datetime] = None
    reversed_at: Optional[datetime] = None
    created_at: datetime
    lines: List[JournalLineResponse]

    model_config = ConfigDict(from_attributes=True)


class JournalEntryValidationResponse(BaseModel):
    valid: bool
    errors: List[str]
    warnings: List[str]
    total_debit: Decimal
    total_credit: Decimal
    difference: Decimal
