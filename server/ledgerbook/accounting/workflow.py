from enum import Enum

from ledgerbook.errors import PolicyError, ValidationError


class JournalStatus(str, Enum):
    DRAFT = "DRAFT"
    POSTED = "POSTED"
    REVERSED = "REVERSED"
    DELETED = "DELETED"


ENTRY_TYPES = ("SALES", "PURCHASE", "PAYMENT", "RECEIPT", "ADJUSTMENT", "PAYROLL", "MANUAL")

# Reversal leaves the original lines untouched and books a new compensating entry.
ALLOWED_TRANSITIONS = {
    JournalStatus.DRAFT: {JournalStatus.POSTED, JournalStatus.DELETED},
    JournalStatus.POSTED: {JournalStatus.REVERSED},
    JournalStatus.REVERSED: set(),
    JournalStatus.DELETED: set(),
}

# Statuses whose lines have been applied to account balances.
LEDGER_STATUSES = (JournalStatus.POSTED.value, JournalStatus.REVERSED.value)


def can_transition(current: str, target: str) -> bool:
    return JournalStatus(target) in ALLOWED_TRANSITIONS[JournalStatus(current)]


def ensure_transition(current: str, target: str) -> None:
    if can_transition(current, target):
        return
    current_status = JournalStatus(current)
    if current_status == JournalStatus.DRAFT and target == JournalStatus.REVERSED:
        raise PolicyError("Only posted journal entries can be reversed.")
    if current_status == JournalStatus.POSTED and target == JournalStatus.POSTED:
        raise PolicyError("Journal entry is already posted.")
    if current_status == JournalStatus.POSTED and target == JournalStatus.DELETED:
        raise PolicyError("Cannot delete a posted journal entry. Reverse it instead.")
    raise PolicyError(f"Cannot move a journal entry from {current_status.value} to {JournalStatus(target).value}.")


def ensure_editable(status: str) -> None:
    if JournalStatus(status) == JournalStatus.DRAFT:
        return
    if JournalStatus(status) == JournalStatus.POSTED:
        raise PolicyError("Cannot modify a posted journal entry. Reverse it instead.")
    raise PolicyError(f"Cannot modify a {JournalStatus(status).value.lower()} journal entry.")


# Entries booked by a business document are undone through that document.
DOCUMENT_ACTIONS = {
    "SALES_INVOICE": "cancel the sales invoice",
    "PURCHASE_INVOICE": "cancel the purchase invoice",
    "PAYMENT": "cancel the payment",
}


def ensure_manual_entry(entry) -> None:
    action = DOCUMENT_ACTIONS.get(entry.reference_type or "")
    if action is None:
        return
    raise PolicyError(
        f"Journal entry {entry.entry_no} was booked by {entry.reference_no or entry.reference_type}; {action} instead."
    )


def ensure_manual_reference(reference_type) -> None:
    if (reference_type or "") in DOCUMENT_ACTIONS:
        raise ValidationError({"reference_type": f"{reference_type} entries are booked by their documents."})
