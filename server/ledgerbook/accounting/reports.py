"""Ledger views and financial statements built from posted journal lines.

Account balances are maintained incrementally by posting; the ledger views
replay journal lines so that date filtering and running balances are exact.
"""
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from ledgerbook.accounting.posting import BALANCE_TOLERANCE
from ledgerbook.accounting.service import compute_account_balance
from ledgerbook.accounting.workflow import LEDGER_STATUSES
from ledgerbook.errors import NotFoundError
from ledgerbook.models import Account, JournalEntry, JournalLine
from ledgerbook.utils.money import ZERO, quantize_money

INCOME_TYPES = ("INCOME",)
EXPENSE_TYPES = ("EXPENSE", "COGS")


def _posted_lines_query(db: Session, start_date: Optional[date], end_date: Optional[date]):
    query = (
        db.query(JournalLine, JournalEntry)
        .join(JournalEntry, JournalLine.journal_entry_id == JournalEntry.id)
        .filter(JournalEntry.status.in_(LEDGER_STATUSES))
    )
    if start_date:
        query = query.filter(JournalEntry.entry_date >= start_date)
    if end_date:
        query = query.filter(JournalEntry.entry_date <= end_date)
    return query


def _posting_accounts(db: Session) -> List[Account]:
    return (
        db.query(Account)
        .filter(Account.is_active.is_(True), Account.is_header.is_(False))
        .order_by(Account.code.asc())
        .all()
    )


def get_account_ledger(
    db: Session,
    account_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> dict:
    account = db.query(Account).filter(Account.id == account_id).first()
    if not account:
        raise NotFoundError("Account not found.")

    opening_balance = Decimal(account.opening_balance or 0)
    if start_date:
        # Movement before the window rolls into the opening balance.
        prior = (
            _posted_lines_query(db, None, None)
            .filter(JournalLine.account_id == account.id, JournalEntry.entry_date < start_date)
            .all()
        )
        for line, _ in prior:
            opening_balance += compute_account_balance(account.normal_balance, line.debit, line.credit)

    rows = (
        _posted_lines_query(db, start_date, end_date)
        .filter(JournalLine.account_id == account.id)
        .order_by(JournalEntry.entry_date.asc(), JournalEntry.id.asc(), JournalLine.line_no.asc())
        .all()
    )

    running_balance = opening_balance
    ledger_lines = []
    for line, entry in rows:
        running_balance += compute_account_balance(account.normal_balance, line.debit, line.credit)
        ledger_lines.append(
            {
                "entry_id": entry.id,
                "entry_no": entry.entry_no,
                "entry_date": entry.entry_date,
                "description": line.description or entry.description,
                "debit": quantize_money(line.debit),
                "credit": quantize_money(line.credit),
                "balance": quantize_money(running_balance),
            }
        )

    return {
        "account_id": account.id,
        "account_code": account.code,
        "account_name": account.name,
        "normal_balance": account.normal_balance,
        "opening_balance": quantize_money(opening_balance),
        "lines": ledger_lines,
        "closing_balance": quantize_money(running_balance),
    }


def get_ledger_summary(
    db: Session,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    show_zero_balances: bool = False,
) -> List[dict]:
    summary = []
    for account in _posting_accounts(db):
        ledger = get_account_ledger(db, account.id, start_date, end_date)
        total_debits = sum((line["debit"] for line in ledger["lines"]), ZERO)
        total_credits = sum((line["credit"] for line in ledger["lines"]), ZERO)
        net_movement = total_debits - total_credits
        if not show_zero_balances and ledger["closing_balance"] == 0 and net_movement == 0:
            continue
        summary.append(
            {
                "account_id": account.id,
                "account_code": account.code,
                "account_name": account.name,
                "account_type": account.type,
                "normal_balance": account.normal_balance,
                "opening_balance": ledger["opening_balance"],
                "total_debits": quantize_money(total_debits),
                "total_credits": quantize_money(total_credits),
                "net_movement": quantize_money(net_movement),
                "closing_balance": ledger["closing_balance"],
                "transaction_count": len(ledger["lines"]),
            }
        )
    return summary


def _balance_as_of(db: Session, account: Account, as_of: Optional[date]) -> Decimal:
    if as_of is None:
        return Decimal(account.current_balance or 0)
    return get_account_ledger(db, account.id, None, as_of)["closing_balance"]


def get_trial_balance(db: Session, as_of: Optional[date] = None) -> dict:
    rows = []
    total_debits = ZERO
    total_credits = ZERO
    for account in _posting_accounts(db):
        balance = _balance_as_of(db, account, as_of)
        if balance == 0:
            continue
        # A negative balance sits on the side opposite the account's normal side.
        on_debit_side = (account.normal_balance == "DEBIT") == (balance > 0)
        debit = abs(balance) if on_debit_side else ZERO
        credit = ZERO if on_debit_side else abs(balance)
        total_debits += debit
        total_credits += credit
        rows.append(
            {
                "account_id": account.id,
                "account_code": account.code,
                "account_name": account.name,
                "account_type": account.type,
                "debit": quantize_money(debit),
                "credit": quantize_money(credit),
            }
        )

    total_debits = quantize_money(total_debits)
    total_credits = quantize_money(total_credits)
    return {
        "as_of_date": as_of or date.today(),
        "accounts": rows,
        "total_debits": total_debits,
        "total_credits": total_credits,
        "is_balanced": abs(total_debits - total_credits) < BALANCE_TOLERANCE,
    }


def _section(accounts: List[Account]) -> tuple[list, Decimal]:
    rows = []
    total = ZERO
    for account in accounts:
        balance = Decimal(account.current_balance or 0)
        total += balance
        rows.append(
            {
                "account_id": account.id,
                "account_code": account.code,
                "account_name": account.name,
                "balance": quantize_money(balance),
            }
        )
    return rows, quantize_money(total)


def get_profit_loss(db: Session) -> dict:
    accounts = _posting_accounts(db)
    revenue, total_revenue = _section([a for a in accounts if a.type in INCOME_TYPES])
    expenses, total_expenses = _section([a for a in accounts if a.type in EXPENSE_TYPES])
    net_profit = total_revenue - total_expenses
    return {
        "revenue": revenue,
        "expenses": expenses,
        "total_revenue": total_revenue,
        "total_expenses": total_expenses,
        "net_profit": net_profit,
        "is_profitable": net_profit > 0,
    }


def get_balance_sheet(db: Session) -> dict:
    accounts = _posting_accounts(db)
    assets, total_assets = _section([a for a in accounts if a.type == "ASSET"])
    liabilities, total_liabilities = _section([a for a in accounts if a.type == "LIABILITY"])
    equity, total_equity = _section([a for a in accounts if a.type == "EQUITY"])

    # Income and expense accounts are never closed out, so the period result is carried here.
    current_earnings = get_profit_loss(db)["net_profit"]
    total_equity = total_equity + current_earnings
    total_liabilities_and_equity = total_liabilities + total_equity
    difference = total_assets - total_liabilities_and_equity
    return {
        "as_of_date": date.today(),
        "assets": assets,
        "liabilities": liabilities,
        "equity": equity,
        "current_earnings": current_earnings,
        "total_assets": total_assets,
        "total_liabilities": total_liabilities,
        "total_equity": total_equity,
        "total_liabilities_and_equity": total_liabilities_and_equity,
        "difference": difference,
        "is_balanced": abs(difference) < BALANCE_TOLERANCE,
    }
