import logging

from sqlalchemy.orm import Session

from .accounting.service import normal_balance_for_type
from .db import SessionLocal
from .models import Account

logger = logging.getLogger(__name__)

HEADER_ACCOUNTS = [
    ("1", "Assets", "ASSET"),
    ("2", "Liabilities", "LIABILITY"),
    ("3", "Equity", "EQUITY"),
    ("4", "Income", "INCOME"),
    ("5", "Cost of Goods Sold", "COGS"),
    ("6", "Expenses", "EXPENSE"),
]

POSTING_ACCOUNTS = {
    "1": [
        ("1000", "Cash in Hand"),
        ("1100", "Bank Accounts"),
        ("1200", "Accounts Receivable"),
        ("1300", "Inventory"),
        ("1400", "Advance Income Tax"),
        ("1500", "Input Sales Tax"),
    ],
    "2": [
        ("2000", "Accounts Payable"),
        ("2100", "Accrued Liabilities"),
        ("2300", "Sales Tax Payable"),
        ("2400", "Withholding Tax Payable"),
    ],
    "3": [
        ("3000", "Owner's Capital"),
        ("3100", "Retained Earnings"),
    ],
    "4": [
        ("4000", "Sales Revenue"),
        ("4100", "Other Income"),
    ],
    "5": [
        ("5000", "Cost of Goods Sold"),
    ],
    "6": [
        ("6000", "General Expenses"),
        ("6100", "Rent Expense"),
        ("6200", "Utilities Expense"),
        ("6300", "Salaries Expense"),
    ],
}


def _upsert_account(db: Session, code: str, name: str, account_type: str, parent: Account | None, is_header: bool) -> tuple[Account, bool]:
    account = db.query(Account).filter(Account.code == code).first()
    created = account is None
    if created:
        account = Account(code=code, opening_balance=0, current_balance=0)
        db.add(account)
    account.name = name
    account.type = account_type
    account.normal_balance = normal_balance_for_type(account_type)
    account.parent_id = parent.id if parent else None
    account.is_header = is_header
    account.is_active = True
    db.flush()
    return account, created


def seed_chart_of_accounts(db: Session) -> tuple[int, int]:
    inserted = 0
    updated = 0

    for header_code, header_name, account_type in HEADER_ACCOUNTS:
        header, created = _upsert_account(db, header_code, header_name, account_type, None, True)
        if created:
            inserted += 1
        else:
            updated += 1

        for code, name in POSTING_ACCOUNTS.get(header_code, []):
            _, created = _upsert_account(db, code, name, account_type, header, False)
            if created:
                inserted += 1
            else:
                updated += 1

    return inserted, updated


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    db: Session = SessionLocal()
    try:
        inserted, updated = seed_chart_of_accounts(db)
        db.commit()
        logger.info("Chart of Accounts seed complete: inserted=%s, updated=%s", inserted, updated)
    finally:
        db.close()


if __name__ == "__main__":
    main()
