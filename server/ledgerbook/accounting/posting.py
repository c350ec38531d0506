from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Sequence

from ledgerbook.errors import InvalidJournalLineError, UnbalancedEntryError
from ledgerbook.utils.money import ZERO, quantize_money

BALANCE_TOLERANCE = Decimal("0.01")
MIN_LINES = 2
MAX_LINES = 100


@dataclass(frozen=True)
class JournalLineInput:
    account_id: Optional[int]
    debit: Decimal = Decimal("0.00")
    credit: Decimal = Decimal("0.00")
    description: str | None = None


@dataclass(frozen=True)
class BalanceCheck:
    is_balanced: bool
    total_debit: Decimal
    total_credit: Decimal
    difference: Decimal


@dataclass(frozen=True)
class JournalLineError:
    line_no: Optional[int]
    message: str

    def __str__(self) -> str:
        if self.line_no is None:
            return self.message
        return f"Line {self.line_no}: {self.message}"


def check_balance(lines: Sequence) -> BalanceCheck:
    total_debit = sum((Decimal(line.debit or 0) for line in lines), ZERO)
    total_credit = sum((Decimal(line.credit or 0) for line in lines), ZERO)
    difference = quantize_money(total_debit) - quantize_money(total_credit)
    return BalanceCheck(
        is_balanced=abs(difference) < BALANCE_TOLERANCE,
        total_debit=quantize_money(total_debit),
        total_credit=quantize_money(total_credit),
        difference=difference,
    )


def validate_journal_lines(lines: Sequence) -> List[JournalLineError]:
    errors: List[JournalLineError] = []
    if len(lines) < MIN_LINES:
        errors.append(JournalLineError(None, f"Journal entry must have at least {MIN_LINES} lines."))
    if len(lines) > MAX_LINES:
        errors.append(JournalLineError(None, f"Journal entry cannot have more than {MAX_LINES} lines."))

    for line_no, line in enumerate(lines, start=1):
        debit = Decimal(line.debit or 0)
        credit = Decimal(line.credit or 0)
        if not line.account_id:
            errors.append(JournalLineError(line_no, "Account is required."))
        if debit < 0 or credit < 0:
            errors.append(JournalLineError(line_no, "Debit and credit cannot be negative."))
        elif debit == 0 and credit == 0:
            errors.append(JournalLineError(line_no, "Must have either a debit or a credit amount."))
        elif debit > 0 and credit > 0:
            errors.append(JournalLineError(line_no, "Cannot have both debit and credit amounts."))
    return errors


def ensure_valid_entry(lines: Sequence) -> BalanceCheck:
    line_errors = validate_journal_lines(lines)
    if line_errors:
        raise InvalidJournalLineError(line_errors)
    return ensure_balanced(lines)


def ensure_balanced(lines: Sequence) -> BalanceCheck:
    result = check_balance(lines)
    if not result.is_balanced:
        raise UnbalancedEntryError(result.total_debit, result.total_credit, result.difference)
    return result


def build_reversal_lines(lines: Sequence) -> List[JournalLineInput]:
    return [
        JournalLineInput(
            account_id=line.account_id,
            debit=Decimal(line.credit or 0),
            credit=Decimal(line.debit or 0),
            description=line.description,
        )
        for line in lines
    ]


def build_invoice_entry(
    *,
    accounts_receivable_id: int,
    revenue_account_id: int,
    sales_tax_account_id: int,
    subtotal: Decimal,
    total_discount: Decimal,
    total_tax: Decimal,
    grand_total: Decimal,
    description: str,
) -> List[JournalLineInput]:
    lines = [
        JournalLineInput(account_id=accounts_receivable_id, debit=grand_total, credit=Decimal("0.00"), description=description),
        JournalLineInput(
            account_id=revenue_account_id,
            debit=Decimal("0.00"),
            credit=subtotal - total_discount,
            description=description,
        ),
    ]
    if total_tax > 0:
        lines.append(
            JournalLineInput(account_id=sales_tax_account_id, debit=Decimal("0.00"), credit=total_tax, description=description)
        )
    ensure_valid_entry(lines)
    return lines


def build_payment_entry(
    *,
    cash_account_id: int,
    accounts_receivable_id: int,
    amount: Decimal,
    description: str,
) -> List[JournalLineInput]:
    lines = [
        JournalLineInput(account_id=cash_account_id, debit=amount, credit=Decimal("0.00"), description=description),
        JournalLineInput(account_id=accounts_receivable_id, debit=Decimal("0.00"), credit=amount, description=description),
    ]
    ensure_valid_entry(lines)
    return lines


def build_bill_entry(
    *,
    accounts_payable_id: int,
    purchase_account_id: int,
    input_tax_account_id: int,
    subtotal: Decimal,
    total_discount: Decimal,
    total_tax: Decimal,
    grand_total: Decimal,
    description: str,
) -> List[JournalLineInput]:
    lines = [
        JournalLineInput(
            account_id=purchase_account_id,
            debit=subtotal - total_discount,
            credit=Decimal("0.00"),
            description=description,
        ),
    ]
    if total_tax > 0:
        lines.append(
            JournalLineInput(account_id=input_tax_account_id, debit=total_tax, credit=Decimal("0.00"), description=description)
        )
    lines.append(
        JournalLineInput(account_id=accounts_payable_id, debit=Decimal("0.00"), credit=grand_total, description=description)
    )
    ensure_valid_entry(lines)
    return lines


def build_vendor_payment_entry(
    *,
    cash_account_id: int,
    accounts_payable_id: int,
    amount: Decimal,
    description: str,
) -> List[JournalLineInput]:
    lines = [
        JournalLineInput(account_id=accounts_payable_id, debit=amount, credit=Decimal("0.00"), description=description),
        JournalLineInput(account_id=cash_account_id, debit=Decimal("0.00"), credit=amount, description=description),
    ]
    ensure_valid_entry(lines)
    return lines
