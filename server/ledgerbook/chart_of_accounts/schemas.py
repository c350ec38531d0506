from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, condecimal


AccountType = Literal["ASSET", "LIABILITY", "EQUITY", "INCOME", "EXPENSE", "COGS"]
DecimalValue = condecimal(max_digits=14, decimal_places=2)


class AccountParentSummary(BaseModel):
    id: int
    name: str
    code: str

    model_config = ConfigDict(from_attributes=True)


class ChartAccountBase(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=200)
    type: AccountType
    description: Optional[str] = None
    is_header: bool = False
    is_active: bool = True
    parent_account_id: Optional[int] = None


class ChartAccountCreate(ChartAccountBase):
    opening_balance: DecimalValue = Decimal("0.00")


class ChartAccountUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    is_active: Optional[bool] = None
    parent_account_id: Optional[int] = None


class ChartAccountResponse(BaseModel):
    id: int
    code: str
    name: str
    type: str
    normal_balance: str
    description: Optional[str] = None
    is_header: bool
    is_active: bool
    parent_account_id: Optional[int] = None
    parent_account: Optional[AccountParentSummary] = None
    opening_balance: Decimal
    current_balance: Decimal
    created_at: datetime
    updated_at: datetime


class LedgerLineResponse(BaseModel):
    entry_id: int
    entry_no: str
    entry_date: date
    description: Optional[str] = None
    debit: Decimal
    credit: Decimal
    balance: Decimal


class AccountLedgerResponse(BaseModel):
    account_id: int
    account_code: str
    account_name: str
    normal_balance: str
    opening_balance: Decimal
    lines: List[LedgerLineResponse]
    closing_balance: Decimal


class LedgerSummaryRow(BaseModel):
    account_id: int
    account_code: str
    account_name: str
    account_type: str
    normal_balance: str
    opening_balance: Decimal
    total_debits: Decimal
    total_credits: Decimal
    net_movement: Decimal
    closing_balance: Decimal
    transaction_count: int


class TrialBalanceRow(BaseModel):
    account_id: int
    account_code: str
    account_name: str
    account_type: str
    debit: Decimal
    credit: Decimal


class TrialBalanceResponse(BaseModel):
    as_of_date: date
    accounts: List[TrialBalanceRow]
    total_debits: Decimal
    total_credits: Decimal
    is_balanced: bool


class StatementRow(BaseModel):
    account_id: int
    account_code: str
    account_name: str
    balance: Decimal


class ProfitLossResponse(BaseModel):
    revenue: List[StatementRow]
    expenses: List[StatementRow]
    total_revenue: Decimal
    total_expenses: Decimal
    net_profit: Decimal
    is_profitable: bool


class BalanceSheetResponse(BaseModel):
    as_of_date: date
    assets: List[StatementRow]
    liabilities: List[StatementRow]
    equity: List[StatementRow]
    current_earnings: Decimal
    total_assets: Decimal
    total_liabilities: Decimal
    total_equity: Decimal
    total_liabilities_and_equity: Decimal
    difference: Decimal
    is_balanced: bool
