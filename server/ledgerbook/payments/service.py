import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Optional, Sequence

from sqlalchemy.orm import Session, selectinload

from ledgerbook.accounting.posting import build_payment_entry, build_vendor_payment_entry
from ledgerbook.accounting.service import (
    ACCOUNTS_PAYABLE_CODE,
    ACCOUNTS_RECEIVABLE_CODE,
    create_journal_entry,
    get_account_by_code,
    post_journal_entry,
    reverse_journal_entry,
)
from ledgerbook.errors import NotFoundError, PolicyError, ValidationError
from ledgerbook.models import Account, Customer, Payment, PurchaseInvoice, SalesInvoice, Vendor
from ledgerbook.sales.service import apply_invoice_payment, ensure_payment_allowed
from ledgerbook.utils.money import ZERO, quantize_money, require_amount
from ledgerbook.utils.numbering import next_document_number

logger = logging.getLogger(__name__)

PAYMENT_TYPES = ("RECEIPT", "PAYMENT")
PAYMENT_METHODS = ("CASH", "BANK_TRANSFER", "CHEQUE", "CREDIT_CARD", "DEBIT_CARD", "ONLINE")
NUMBER_PREFIXES = {"RECEIPT": "RCP", "PAYMENT": "PAY"}
EDITABLE_FIELDS = (
    "payment_date",
    "customer_id",
    "vendor_id",
    "amount",
    "payment_method",
    "account_id",
    "reference",
    "sales_invoice_id",
    "purchase_invoice_id",
    "notes",
)


def get_payment(db: Session, payment_id: int) -> Payment:
    payment = (
        db.query(Payment)
        .options(selectinload(Payment.customer), selectinload(Payment.vendor))
        .filter(Payment.id == payment_id)
        .first()
    )
    if not payment:
        raise NotFoundError("Payment not found.")
    return payment


def list_payments(
    db: Session,
    payment_type: Optional[str] = None,
    status: Optional[str] = None,
    customer_id: Optional[int] = None,
    vendor_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> Sequence[Payment]:
    query = db.query(Payment).options(selectinload(Payment.customer), selectinload(Payment.vendor))
    if payment_type:
        query = query.filter(Payment.payment_type == payment_type.upper())
    if status:
        query = query.filter(Payment.status == status.upper())
    if customer_id:
        query = query.filter(Payment.customer_id == customer_id)
    if vendor_id:
        query = query.filter(Payment.vendor_id == vendor_id)
    if start_date:
        query = query.filter(Payment.payment_date >= start_date)
    if end_date:
        query = query.filter(Payment.payment_date <= end_date)
    return query.order_by(Payment.payment_date.desc(), Payment.id.desc()).all()


def _check_party(db: Session, model, party_id: Optional[int], field: str, label: str, errors: Dict[str, str], *, require_active: bool):
    if not party_id:
        errors[field] = f"{label} is required."
        return None
    party = db.query(model).filter(model.id == party_id).first()
    if party is None:
        errors[field] = f"{label} not found."
    elif require_active and not party.is_active:
        errors[field] = f"{label} is inactive."
    return party


def _check_cash_account(db: Session, account_id: Optional[int], errors: Dict[str, str]) -> None:
    if not account_id:
        errors["account_id"] = "Cash or bank account is required."
        return
    account = db.query(Account).filter(Account.id == account_id).first()
    if account is None:
        errors["account_id"] = "Account not found."
    elif account.type != "ASSET" or account.is_header or not account.is_active:
        errors["account_id"] = "Payments must use an active cash or bank asset account."


def _linked_invoice(db: Session, data: dict, party_field: str, invoice_field: str, model, errors: Dict[str, str]):
    invoice_id = data.get(invoice_field)
    if not invoice_id:
        return None
    invoice = db.query(model).filter(model.id == invoice_id).first()
    if invoice is None:
        errors[invoice_field] = "Invoice not found."
        return None
    if getattr(invoice, party_field) != data.get(party_field):
        errors[invoice_field] = "Invoice does not belong to the payment party."
        return None
    return invoice


def _validate(db: Session, data: dict) -> Decimal:
    """Checks a full payment payload; raises one ValidationError naming every bad field."""
    errors: Dict[str, str] = {}
    payment_type = data.get("payment_type")
    if payment_type not in PAYMENT_TYPES:
        raise ValidationError({"payment_type": "Payment type must be RECEIPT or PAYMENT."})
    if data.get("payment_method") not in PAYMENT_METHODS:
        errors["payment_method"] = f"Payment method must be one of {', '.join(PAYMENT_METHODS)}."

    amount = ZERO
    try:
        amount = require_amount(data.get("amount"), "amount", minimum=ZERO, allow_zero=False)
    except ValidationError as exc:
        errors.update(exc.errors)

    if payment_type == "RECEIPT":
        if data.get("vendor_id") or data.get("purchase_invoice_id"):
            errors["vendor_id"] = "Receipts are taken from customers."
        invoice = _linked_invoice(db, data, "customer_id", "sales_invoice_id", SalesInvoice, errors)
        _check_party(db, Customer, data.get("customer_id"), "customer_id", "Customer", errors, require_active=invoice is None)
    else:
        if data.get("customer_id") or data.get("sales_invoice_id"):
            errors["customer_id"] = "Payments are made to vendors."
        invoice = _linked_invoice(db, data, "vendor_id", "purchase_invoice_id", PurchaseInvoice, errors)
        _check_party(db, Vendor, data.get("vendor_id"), "vendor_id", "Vendor", errors, require_active=invoice is None)
    _check_cash_account(db, data.get("account_id"), errors)

    if errors:
        raise ValidationError(errors)
    if invoice is not None:
        ensure_payment_allowed(invoice, amount)
    return amount


def create_payment(db: Session, payload: dict) -> Payment:
    data = dict(payload)
    data["payment_type"] = (data.get("payment_type") or "").upper()
    data["payment_method"] = (data.get("payment_method") or "CASH").upper()
    data["payment_date"] = data.get("payment_date") or date.today()
    amount = _validate(db, data)

    payment = Payment(
        payment_no=next_document_number(
            db, Payment.payment_no, NUMBER_PREFIXES[data["payment_type"]], data["payment_date"].year
        ),
        payment_type=data["payment_type"],
        status="DRAFT",
        **{key: data.get(key) for key in EDITABLE_FIELDS if key != "amount"},
    )
    payment.amount = quantize_money(amount)
    db.add(payment)
    db.flush()
    logger.info("Created %s %s (id=%s) amount=%s", payment.payment_type.lower(), payment.payment_no, payment.id, payment.amount)
    return payment


def update_payment(db: Session, payment: Payment, payload: dict) -> Payment:
    if payment.status != "DRAFT":
        raise PolicyError("Only draft payments can be edited.")

    data = {key: getattr(payment, key) for key in EDITABLE_FIELDS}
    data.update({key: value for key, value in payload.items() if key in EDITABLE_FIELDS})
    data["payment_type"] = payment.payment_type
    data["payment_method"] = (data.get("payment_method") or "CASH").upper()
    amount = _validate(db, data)

    for key in EDITABLE_FIELDS:
        setattr(payment, key, data.get(key))
    payment.amount = quantize_money(amount)
    db.flush()
    return payment


def _linked_document(db: Session, payment: Payment):
    if payment.payment_type == "RECEIPT":
        return db.get(SalesInvoice, payment.sales_invoice_id) if payment.sales_invoice_id else None
    return db.get(PurchaseInvoice, payment.purchase_invoice_id) if payment.purchase_invoice_id else None


def post_payment(db: Session, payment: Payment) -> Payment:
    if payment.status != "DRAFT":
        raise PolicyError(f"Cannot post payment in {payment.status} status.")

    invoice = _linked_document(db, payment)
    if invoice is not None:
        ensure_payment_allowed(invoice, payment.amount)

    amount = Decimal(payment.amount)
    party = payment.party_name or "unknown party"
    if payment.payment_type == "RECEIPT":
        description = f"Receipt from {party} - {payment.payment_no}"
        lines = build_payment_entry(
            cash_account_id=payment.account_id,
            accounts_receivable_id=get_account_by_code(db, ACCOUNTS_RECEIVABLE_CODE).id,
            amount=amount,
            description=description,
        )
    else:
        description = f"Payment to {party} - {payment.payment_no}"
        lines = build_vendor_payment_entry(
            cash_account_id=payment.account_id,
            accounts_payable_id=get_account_by_code(db, ACCOUNTS_PAYABLE_CODE).id,
            amount=amount,
            description=description,
        )

    entry = create_journal_entry(
        db,
        entry_date=payment.payment_date,
        description=description,
        lines=lines,
        entry_type=payment.payment_type,
        reference_type="PAYMENT",
        reference_id=payment.id,
        reference_no=payment.payment_no,
    )
    post_journal_entry(db, entry)

    if invoice is not None:
        apply_invoice_payment(invoice, amount)
    payment.journal_entry = entry
    payment.status = "POSTED"
    payment.posted_at = datetime.utcnow()
    db.flush()
    logger.info("Posted %s %s with journal entry %s", payment.payment_type.lower(), payment.payment_no, entry.entry_no)
    return payment


def cancel_payment(db: Session, payment: Payment, reason: Optional[str] = None) -> Payment:
    if payment.status == "CANCELLED":
        raise PolicyError("Payment is already cancelled.")

    if payment.status == "POSTED":
        reverse_journal_entry(db, payment.journal_entry)
        invoice = _linked_document(db, payment)
        if invoice is not None:
            apply_invoice_payment(invoice, -Decimal(payment.amount))

    payment.status = "CANCELLED"
    payment.cancelled_at = datetime.utcnow()
    payment.cancellation_reason = reason
    db.flush()
    logger.info("Cancelled %s %s", payment.payment_type.lower(), payment.payment_no)
    return payment
