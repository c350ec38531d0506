from datetime import date, timedelta
from decimal import Decimal

import pytest

from ledgerbook.accounting.service import (
    create_journal_entry,
    delete_journal_entry,
    get_journal_entry,
    list_journal_entries,
    post_journal_entry,
    reverse_journal_entry,
    update_journal_entry,
    validate_journal_entry,
)
from ledgerbook.errors import InvalidJournalLineError, NotFoundError, PolicyError, UnbalancedEntryError
from ledgerbook.models import Account


def account(db, code):
    return db.query(Account).filter(Account.code == code).one()


def rent_lines(db, amount="500.00"):
    return [
        {"account_id": account(db, "6100").id, "debit": amount, "credit": 0},
        {"account_id": account(db, "1000").id, "debit": 0, "credit": amount},
    ]


def test_create_entry_starts_as_numbered_draft(db):
    entry = create_journal_entry(db, entry_date=date(2026, 3, 1), description="March rent", lines=rent_lines(db))
    second = create_journal_entry(db, entry_date=date(2026, 3, 2), description="More rent", lines=rent_lines(db))

    assert entry.status == "DRAFT"
    assert entry.entry_no == "JV-2026-0001"
    assert second.entry_no == "JV-2026-0002"
    assert entry.total_debit == entry.total_credit == Decimal("500.00")
    assert [line.line_no for line in entry.lines] == [1, 2]


def test_create_rejects_unbalanced_and_invalid_lines(db):
    lines = rent_lines(db)
    lines[1]["credit"] = "499.99"
    with pytest.raises(UnbalancedEntryError):
        create_journal_entry(db, entry_date=date(2026, 3, 1), description="Rent", lines=lines)

    with pytest.raises(InvalidJournalLineError):
        create_journal_entry(db, entry_date=date(2026, 3, 1), description="Rent", lines=rent_lines(db)[:1])


def test_create_rejects_header_and_inactive_accounts(db):
    header = account(db, "6")
    lines = rent_lines(db)
    lines[0]["account_id"] = header.id
    with pytest.raises(ValueError, match="header"):
        create_journal_entry(db, entry_date=date(2026, 3, 1), description="Rent", lines=lines)

    utilities = account(db, "6200")
    utilities.is_active = False
    db.flush()
    lines = rent_lines(db)
    lines[0]["account_id"] = utilities.id
    with pytest.raises(ValueError, match="inactive"):
        create_journal_entry(db, entry_date=date(2026, 3, 1), description="Rent", lines=lines)

    lines[0]["account_id"] = 9999
    with pytest.raises(NotFoundError):
        create_journal_entry(db, entry_date=date(2026, 3, 1), description="Rent", lines=lines)


def test_posting_updates_account_balances(db):
    entry = create_journal_entry(db, entry_date=date(2026, 3, 1), description="March rent", lines=rent_lines(db))
    post_journal_entry(db, entry)

    assert entry.status == "POSTED"
    assert entry.posted_at is not None
    assert account(db, "6100").current_balance == Decimal("500.00")
    assert account(db, "1000").current_balance == Decimal("-500.00")

    with pytest.raises(PolicyError, match="already posted"):
        post_journal_entry(db, entry)


def test_posted_entry_cannot_be_edited_or_deleted(db):
    entry = create_journal_entry(db, entry_date=date(2026, 3, 1), description="March rent", lines=rent_lines(db))
    post_journal_entry(db, entry)

    with pytest.raises(PolicyError):
        update_journal_entry(db, entry, {"description": "Changed"})
    with pytest.raises(PolicyError):
        delete_journal_entry(db, entry)


def test_draft_edit_replaces_lines_and_totals(db):
    entry = create_journal_entry(db, entry_date=date(2026, 3, 1), description="March rent", lines=rent_lines(db))
    update_journal_entry(db, entry, {"description": "April rent", "lines": rent_lines(db, "650.00")})

    assert entry.description == "April rent"
    assert entry.total_debit == Decimal("650.00")
    assert len(entry.lines) == 2


def test_deleted_draft_is_hidden(db):
    entry = create_journal_entry(db, entry_date=date(2026, 3, 1), description="March rent", lines=rent_lines(db))
    delete_journal_entry(db, entry)

    assert entry.status == "DELETED"
    assert entry.deleted_at is not None
    with pytest.raises(NotFoundError):
        get_journal_entry(db, entry.id)
    assert list_journal_entries(db) == []


def test_reversal_books_a_posted_mirror_entry(db):
    entry = create_journal_entry(db, entry_date=date(2026, 3, 1), description="March rent", lines=rent_lines(db))
    post_journal_entry(db, entry)

    reversing = reverse_journal_entry(db, entry, reversal_date=date(2026, 3, 31))

    assert entry.status == "REVERSED"
    assert entry.reversed_at is not None
    assert reversing.status == "POSTED"
    assert reversing.is_reversal is True
    assert reversing.reversed_entry_id == entry.id
    assert reversing.description == "REVERSAL: March rent"
    assert [(line.debit, line.credit) for line in reversing.lines] == [
        (Decimal("0.00"), Decimal("500.00")),
        (Decimal("500.00"), Decimal("0.00")),
    ]
    assert account(db, "6100").current_balance == 0
    assert account(db, "1000").current_balance == 0

    with pytest.raises(PolicyError):
        reverse_journal_entry(db, entry)


def test_draft_cannot_be_reversed(db):
    entry = create_journal_entry(db, entry_date=date(2026, 3, 1), description="March rent", lines=rent_lines(db))
    with pytest.raises(PolicyError):
        reverse_journal_entry(db, entry)


def test_validate_reports_inactive_accounts_and_future_dates(db):
    entry = create_journal_entry(
        db,
        entry_date=date.today() + timedelta(days=10),
        description="Prepaid rent",
        lines=rent_lines(db),
    )
    account(db, "6100").is_active = False
    db.flush()

    result = validate_journal_entry(db, entry)

    assert result["valid"] is False
    assert any("inactive" in error for error in result["errors"])
    assert result["warnings"] == ["Entry date is in the future."]
    assert result["difference"] == 0


def test_list_filters_by_status_and_search(db):
    posted = create_journal_entry(db, entry_date=date(2026, 3, 1), description="March rent", lines=rent_lines(db))
    post_journal_entry(db, posted)
    create_journal_entry(db, entry_date=date(2026, 3, 2), description="Office supplies", lines=rent_lines(db))

    assert [entry.id for entry in list_journal_entries(db, status="posted")] == [posted.id]
    assert [entry.description for entry in list_journal_entries(db, search="supplies")] == ["Office supplies"]
