from decimal import Decimal
from typing import Dict, List, Optional


class NotFoundError(LookupError):
    """Raised when a referenced record does not exist."""


class ValidationError(ValueError):
    """Form-level validation failure reported per field."""

    def __init__(self, errors: Dict[str, str], message: Optional[str] = None):
        self.errors = dict(errors)
        super().__init__(message or "; ".join(f"{field}: {error}" for field, error in self.errors.items()))


class PolicyError(ValueError):
    """Raised when a document is asked to make a transition its status forbids."""


class InvalidJournalLineError(ValueError):
    def __init__(self, line_errors: List):
        self.line_errors = list(line_errors)
        super().__init__("; ".join(str(error) for error in self.line_errors))


class UnbalancedEntryError(ValueError):
    def __init__(self, total_debit: Decimal, total_credit: Decimal, difference: Decimal):
        self.total_debit = total_debit
        self.total_credit = total_credit
        self.difference = difference
        super().__init__(
            f"Journal entry is unbalanced: debits={total_debit} credits={total_credit} difference={difference}"
        )
