from datetime import date
from decimal import Decimal

import pytest

from ledgerbook.accounting.reports import (
    get_account_ledger,
    get_balance_sheet,
    get_ledger_summary,
    get_profit_loss,
    get_trial_balance,
)
from ledgerbook.accounting.service import create_journal_entry, post_journal_entry, reverse_journal_entry
from ledgerbook.errors import NotFoundError
from ledgerbook.models import Account


def account(db, code):
    return db.query(Account).filter(Account.code == code).one()


def post(db, entry_date, description, debit_code, credit_code, amount):
    entry = create_journal_entry(
        db,
        entry_date=entry_date,
        description=description,
        lines=[
            {"account_id": account(db, debit_code).id, "debit": amount, "credit": 0},
            {"account_id": account(db, credit_code).id, "debit": 0, "credit": amount},
        ],
    )
    return post_journal_entry(db, entry)


@pytest.fixture()
def books(db):
    post(db, date(2026, 1, 5), "Owner investment", "1000", "3000", Decimal("10000"))
    post(db, date(2026, 2, 10), "Cash sale", "1000", "4000", Decimal("2500"))
    post(db, date(2026, 2, 20), "February rent", "6100", "1000", Decimal("800"))
    draft = create_journal_entry(
        db,
        entry_date=date(2026, 2, 25),
        description="Unposted utilities",
        lines=[
            {"account_id": account(db, "6200").id, "debit": 50, "credit": 0},
            {"account_id": account(db, "1000").id, "debit": 0, "credit": 50},
        ],
    )
    return db, draft


def test_account_ledger_runs_balance_in_date_order(books):
    db, _ = books
    ledger = get_account_ledger(db, account(db, "1000").id)

    assert ledger["opening_balance"] == 0
    assert [line["balance"] for line in ledger["lines"]] == [
        Decimal("10000.00"),
        Decimal("12500.00"),
        Decimal("11700.00"),
    ]
    assert ledger["closing_balance"] == Decimal("11700.00")


def test_account_ledger_rolls_prior_movement_into_opening(books):
    db, _ = books
    ledger = get_account_ledger(db, account(db, "1000").id, start_date=date(2026, 2, 1))

    assert ledger["opening_balance"] == Decimal("10000.00")
    assert len(ledger["lines"]) == 2
    assert ledger["closing_balance"] == Decimal("11700.00")


def test_account_ledger_unknown_account(db):
    with pytest.raises(NotFoundError):
        get_account_ledger(db, 9999)


def test_ledger_summary_skips_untouched_accounts(books):
    db, _ = books
    summary = {row["account_code"]: row for row in get_ledger_summary(db)}

    assert set(summary) == {"1000", "3000", "4000", "6100"}
    assert summary["1000"]["total_debits"] == Decimal("12500.00")
    assert summary["1000"]["total_credits"] == Decimal("800.00")
    assert summary["1000"]["transaction_count"] == 3


def test_trial_balance_balances(books):
    db, _ = books
    trial = get_trial_balance(db)

    assert trial["is_balanced"] is True
    assert trial["total_debits"] == trial["total_credits"] == Decimal("12500.00")
    rows = {row["account_code"]: row for row in trial["accounts"]}
    assert rows["4000"]["credit"] == Decimal("2500.00")
    assert rows["6100"]["debit"] == Decimal("800.00")


def test_trial_balance_as_of_excludes_later_entries(books):
    db, _ = books
    trial = get_trial_balance(db, as_of=date(2026, 1, 31))

    assert trial["total_debits"] == Decimal("10000.00")
    assert {row["account_code"] for row in trial["accounts"]} == {"1000", "3000"}


def test_negative_balance_moves_to_the_opposite_side(db):
    post(db, date(2026, 3, 1), "Overdrawn", "6100", "1000", Decimal("100"))
    rows = {row["account_code"]: row for row in get_trial_balance(db)["accounts"]}

    assert rows["1000"]["credit"] == Decimal("100.00")
    assert rows["1000"]["debit"] == 0


def test_profit_loss_and_balance_sheet(books):
    db, _ = books
    pnl = get_profit_loss(db)
    assert pnl["total_revenue"] == Decimal("2500.00")
    assert pnl["total_expenses"] == Decimal("800.00")
    assert pnl["net_profit"] == Decimal("1700.00")
    assert pnl["is_profitable"] is True

    sheet = get_balance_sheet(db)
    assert sheet["total_assets"] == Decimal("11700.00")
    assert sheet["current_earnings"] == Decimal("1700.00")
    assert sheet["total_equity"] == Decimal("11700.00")
    assert sheet["is_balanced"] is True


def test_reversed_entries_net_to_zero_in_reports(db):
    entry = post(db, date(2026, 3, 1), "Mistaken rent", "6100", "1000", Decimal("300"))
    reverse_journal_entry(db, entry, reversal_date=date(2026, 3, 2))

    assert get_profit_loss(db)["total_expenses"] == 0
    ledger = get_account_ledger(db, account(db, "6100").id)
    assert len(ledger["lines"]) == 2
    assert ledger["closing_balance"] == 0
