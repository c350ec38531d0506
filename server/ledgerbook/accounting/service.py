import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session, selectinload

from ledgerbook.accounting.posting import (
    JournalLineInput,
    build_reversal_lines,
    check_balance,
    ensure_valid_entry,
    validate_journal_lines,
)
from ledgerbook.accounting.workflow import JournalStatus, ensure_editable, ensure_transition
from ledgerbook.errors import NotFoundError
from ledgerbook.models import Account, JournalEntry, JournalLine
from ledgerbook.utils.numbering import next_document_number

logger = logging.getLogger(__name__)

DEBIT_NORMAL_TYPES = {"ASSET", "EXPENSE", "COGS"}

CASH_ACCOUNT_CODE = "1000"
ACCOUNTS_RECEIVABLE_CODE = "1200"
INVENTORY_CODE = "1300"
INPUT_TAX_CODE = "1500"
ACCOUNTS_PAYABLE_CODE = "2000"
SALES_TAX_PAYABLE_CODE = "2300"
SALES_REVENUE_CODE = "4000"


def normal_balance_for_type(account_type: str) -> str:
    return "DEBIT" if (account_type or "").upper() in DEBIT_NORMAL_TYPES else "CREDIT"


def compute_account_balance(normal_balance: str, debit: Decimal, credit: Decimal) -> Decimal:
    """Debit-normal accounts grow on debit, credit-normal accounts on credit."""
    if (normal_balance or "").upper() == "DEBIT":
        return Decimal(debit or 0) - Decimal(credit or 0)
    return Decimal(credit or 0) - Decimal(debit or 0)


def _next_entry_no(db: Session, entry_date: date) -> str:
    return next_document_number(db, JournalEntry.entry_no, "JV", entry_date.year)


def to_line_inputs(lines: Iterable) -> List[JournalLineInput]:
    inputs: List[JournalLineInput] = []
    for line in lines:
        if isinstance(line, JournalLineInput):
            inputs.append(line)
            continue
        data = line if isinstance(line, dict) else line.model_dump()
        inputs.append(
            JournalLineInput(
                account_id=data.get("account_id"),
                debit=Decimal(data.get("debit") or 0),
                credit=Decimal(data.get("credit") or 0),
                description=data.get("description"),
            )
        )
    return inputs


def _load_posting_accounts(db: Session, lines: Sequence) -> dict[int, Account]:
    account_ids = {line.account_id for line in lines}
    accounts = {account.id: account for account in db.query(Account).filter(Account.id.in_(account_ids)).all()}
    for account_id in account_ids:
        account = accounts.get(account_id)
        if account is None:
            raise NotFoundError(f"Account not found: {account_id}")
        if not account.is_active:
            raise ValueError(f"Account is inactive: {account.name}")
        if account.is_header:
            raise ValueError(f"Cannot use header account: {account.name}")
    return accounts


def _build_lines(lines: Sequence[JournalLineInput]) -> List[JournalLine]:
    return [
        JournalLine(
            line_no=line_no,
            account_id=line.account_id,
            description=line.description,
            debit=line.debit,
            credit=line.credit,
        )
        for line_no, line in enumerate(lines, start=1)
    ]


def get_journal_entry(db: Session, entry_id: int) -> JournalEntry:
    entry = (
        db.query(JournalEntry)
        .options(selectinload(JournalEntry.lines))
        .filter(JournalEntry.id == entry_id, JournalEntry.status != JournalStatus.DELETED.value)
        .first()
    )
    if not entry:
        raise NotFoundError("Journal entry not found.")
    return entry


def list_journal_entries(
    db: Session,
    *,
    status: Optional[str] = None,
    entry_type: Optional[str] = None,
    search: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: int = 50,
    offset: int = 0,
) -> Sequence[JournalEntry]:
    query = (
        db.query(JournalEntry)
        .options(selectinload(JournalEntry.lines))
        .filter(JournalEntry.status != JournalStatus.DELETED.value)
    )
    if status:
        query = query.filter(JournalEntry.status == status.upper())
    if entry_type:
        query = query.filter(JournalEntry.entry_type == entry_type.upper())
    if search:
        like = f"%{search}%"
        query = query.filter(
            JournalEntry.description.ilike(like)
            | JournalEntry.entry_no.ilike(like)
            | JournalEntry.reference_no.ilike(like)
        )
    if start_date:
        query = query.filter(JournalEntry.entry_date >= start_date)
    if end_date:
        query = query.filter(JournalEntry.entry_date <= end_date)
    return (
        query.order_by(JournalEntry.entry_date.desc(), JournalEntry.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def create_journal_entry(
    db: Session,
    *,
    entry_date: date,
    description: str,
    lines: Iterable,
    entry_type: str = "MANUAL",
    reference_type: Optional[str] = None,
    reference_id: Optional[int] = None,
    reference_no: Optional[str] = None,
    notes: Optional[str] = None,
    is_reversal: bool = False,
    reversed_entry_id: Optional[int] = None,
) -> JournalEntry:
    line_inputs = to_line_inputs(lines)
    balance = ensure_valid_entry(line_inputs)
    _load_posting_accounts(db, line_inputs)

    entry = JournalEntry(
        entry_no=_next_entry_no(db, entry_date),
        entry_date=entry_date,
        entry_type=entry_type.upper(),
        description=description,
        reference_type=reference_type,
        reference_id=reference_id,
        reference_no=reference_no,
        notes=notes,
        status=JournalStatus.DRAFT.value,
        total_debit=balance.total_debit,
        total_credit=balance.total_credit,
        is_reversal=is_reversal,
        reversed_entry_id=reversed_entry_id,
    )
    entry.lines = _build_lines(line_inputs)
    db.add(entry)
    db.flush()
    logger.info("Created journal entry %s (id=%s) total=%s", entry.entry_no, entry.id, balance.total_debit)
    return entry


def update_journal_entry(db: Session, entry: JournalEntry, payload: dict) -> JournalEntry:
    ensure_editable(entry.status)

    lines_payload = payload.pop("lines", None)
    for key in ("entry_date", "entry_type", "description", "reference_type", "reference_id", "reference_no", "notes"):
        if key in payload:
            value = payload[key]
            setattr(entry, key, value.upper() if key == "entry_type" and value else value)

    if lines_payload is not None:
        line_inputs = to_line_inputs(lines_payload)
        balance = ensure_valid_entry(line_inputs)
        _load_posting_accounts(db, line_inputs)
        entry.lines.clear()
        db.flush()
        entry.lines = _build_lines(line_inputs)
        entry.total_debit = balance.total_debit
        entry.total_credit = balance.total_credit

    db.flush()
    logger.info("Updated journal entry %s (id=%s)", entry.entry_no, entry.id)
    return entry


def delete_journal_entry(db: Session, entry: JournalEntry) -> JournalEntry:
    ensure_transition(entry.status, JournalStatus.DELETED)
    entry.status = JournalStatus.DELETED.value
    entry.deleted_at = datetime.utcnow()
    db.flush()
    logger.info("Deleted draft journal entry %s (id=%s)", entry.entry_no, entry.id)
    return entry


def _apply_to_balances(db: Session, entry: JournalEntry) -> None:
    accounts = _load_posting_accounts(db, entry.lines)
    for line in entry.lines:
        account = accounts[line.account_id]
        change = compute_account_balance(account.normal_balance, line.debit, line.credit)
        account.current_balance = Decimal(account.current_balance or 0) + change
        logger.debug("Account %s balance change %s -> %s", account.code, change, account.current_balance)


def post_journal_entry(db: Session, entry: JournalEntry) -> JournalEntry:
    ensure_transition(entry.status, JournalStatus.POSTED)
    ensure_valid_entry(entry.lines)
    _apply_to_balances(db, entry)
    entry.status = JournalStatus.POSTED.value
    entry.posted_at = datetime.utcnow()
    db.flush()
    logger.info("Posted journal entry %s (id=%s)", entry.entry_no, entry.id)
    return entry


def reverse_journal_entry(db: Session, entry: JournalEntry, *, reversal_date: Optional[date] = None) -> JournalEntry:
    ensure_transition(entry.status, JournalStatus.REVERSED)
    reversing_entry = create_journal_entry(
        db,
        entry_date=reversal_date or date.today(),
        description=f"REVERSAL: {entry.description}",
        lines=build_reversal_lines(entry.lines),
        entry_type=entry.entry_type,
        reference_type=entry.reference_type,
        reference_id=entry.reference_id,
        reference_no=entry.reference_no,
        is_reversal=True,
        reversed_entry_id=entry.id,
    )
    post_journal_entry(db, reversing_entry)
    entry.status = JournalStatus.REVERSED.value
    entry.reversed_at = datetime.utcnow()
    db.flush()
    logger.info("Reversed journal entry %s with %s", entry.entry_no, reversing_entry.entry_no)
    return reversing_entry


def validate_journal_entry(db: Session, entry: JournalEntry) -> dict:
    errors: List[str] = []
    warnings: List[str] = []

    if entry.status != JournalStatus.DRAFT.value:
        errors.append(f"Journal entry is {entry.status.lower()} and cannot be posted.")

    errors.extend(str(error) for error in validate_journal_lines(entry.lines))

    balance = check_balance(entry.lines)
    if not balance.is_balanced:
        errors.append(f"Entry not balanced. Difference: {balance.difference}")

    account_ids = {line.account_id for line in entry.lines if line.account_id}
    accounts = {account.id: account for account in db.query(Account).filter(Account.id.in_(account_ids)).all()}
    for line_no, line in enumerate(entry.lines, start=1):
        account = accounts.get(line.account_id)
        if account is None:
            continue
        if not account.is_active:
            errors.append(f'Line {line_no}: Account "{account.name}" is inactive')
        if account.is_header:
            errors.append(f'Line {line_no}: Cannot use header account "{account.name}"')

    if entry.entry_date and entry.entry_date > date.today():
        warnings.append("Entry date is in the future.")

    return {
        "valid": not errors,
        "errors": errors,
        "warnings": warnings,
        "total_debit": balance.total_debit,
        "total_credit": balance.total_credit,
        "difference": balance.difference,
    }


def get_account_by_code(db: Session, code: str) -> Account:
    account = db.query(Account).filter(Account.code == code).first()
    if not account:
        raise ValueError(f"Required account {code} not found in chart of accounts.")
    return account
