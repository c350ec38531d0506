from types import SimpleNamespace

import pytest

from ledgerbook.accounting.workflow import can_transition, ensure_editable, ensure_manual_entry, ensure_transition
from ledgerbook.errors import PolicyError


@pytest.mark.parametrize(
    "current, target, allowed",
    [
        ("DRAFT", "POSTED", True),
        ("DRAFT", "DELETED", True),
        ("DRAFT", "REVERSED", False),
        ("POSTED", "REVERSED", True),
        ("POSTED", "DELETED", False),
        ("POSTED", "DRAFT", False),
        ("REVERSED", "POSTED", False),
        ("DELETED", "POSTED", False),
    ],
)
def test_transitions(current, target, allowed):
    assert can_transition(current, target) is allowed


def test_posted_entries_point_at_reversal():
    with pytest.raises(PolicyError, match="Reverse it instead"):
        ensure_transition("POSTED", "DELETED")
    with pytest.raises(PolicyError, match="Reverse it instead"):
        ensure_editable("POSTED")


def test_draft_cannot_be_reversed():
    with pytest.raises(PolicyError, match="Only posted"):
        ensure_transition("DRAFT", "REVERSED")


def test_only_drafts_are_editable():
    ensure_editable("DRAFT")
    with pytest.raises(PolicyError):
        ensure_editable("REVERSED")


def test_document_entries_point_at_their_document():
    invoice_entry = SimpleNamespace(entry_no="JV-2026-0003", reference_type="SALES_INVOICE", reference_no="INV-2026-0001")
    with pytest.raises(PolicyError, match="INV-2026-0001; cancel the sales invoice instead"):
        ensure_manual_entry(invoice_entry)

    ensure_manual_entry(SimpleNamespace(entry_no="JV-2026-0004", reference_type=None, reference_no="RENT-03"))
