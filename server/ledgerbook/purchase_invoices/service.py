import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Optional, Sequence

from sqlalchemy.orm import Session, selectinload

from ledgerbook.accounting.posting import build_bill_entry
from ledgerbook.accounting.service import (
    ACCOUNTS_PAYABLE_CODE,
    CASH_ACCOUNT_CODE,
    INPUT_TAX_CODE,
    INVENTORY_CODE,
    create_journal_entry,
    get_account_by_code,
    post_journal_entry,
    reverse_journal_entry,
)
from ledgerbook.errors import NotFoundError, PolicyError, ValidationError
from ledgerbook.models import Account, PurchaseInvoice, PurchaseInvoiceLine, PurchaseOrder
from ledgerbook.purchasing.service import require_vendor
from ledgerbook.sales.calculations import DocumentTotals
from ledgerbook.sales.service import build_document_lines, ensure_payment_allowed, refresh_invoice_status
from ledgerbook.utils.money import ZERO, quantize_money
from ledgerbook.utils.numbering import next_document_number

logger = logging.getLogger(__name__)

BILLABLE_PO_STATUSES = {"PARTIALLY_RECEIVED", "RECEIVED"}
PURCHASE_ACCOUNT_TYPES = {"ASSET", "EXPENSE", "COGS"}


def _apply_totals(bill: PurchaseInvoice, totals: DocumentTotals) -> None:
    bill.subtotal = totals.subtotal
    bill.total_discount = totals.total_discount
    bill.total_tax = totals.total_tax
    bill.grand_total = totals.grand_total
    bill.amount_due = quantize_money(totals.grand_total - Decimal(bill.amount_paid or 0))


def _check_debit_account(db: Session, account_id: Optional[int]) -> None:
    """Bills debit inventory unless another asset or expense account is chosen."""
    if not account_id:
        return
    account = db.query(Account).filter(Account.id == account_id).first()
    if account is None:
        raise ValidationError({"debit_account_id": "Account not found."})
    if account.type not in PURCHASE_ACCOUNT_TYPES or account.is_header or not account.is_active:
        raise ValidationError({"debit_account_id": "Bills must debit an active asset, expense or COGS account."})


def get_purchase_invoice(db: Session, invoice_id: int) -> PurchaseInvoice:
    bill = (
        db.query(PurchaseInvoice)
        .options(selectinload(PurchaseInvoice.lines), selectinload(PurchaseInvoice.vendor))
        .filter(PurchaseInvoice.id == invoice_id)
        .first()
    )
    if not bill:
        raise NotFoundError("Purchase invoice not found.")
    return bill


def list_purchase_invoices(
    db: Session,
    status: Optional[str] = None,
    vendor_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    overdue_on: Optional[date] = None,
) -> Sequence[PurchaseInvoice]:
    query = db.query(PurchaseInvoice).options(selectinload(PurchaseInvoice.vendor))
    if status:
        query = query.filter(PurchaseInvoice.status == status.upper())
    if vendor_id:
        query = query.filter(PurchaseInvoice.vendor_id == vendor_id)
    if start_date:
        query = query.filter(PurchaseInvoice.invoice_date >= start_date)
    if end_date:
        query = query.filter(PurchaseInvoice.invoice_date <= end_date)
    if overdue_on:
        query = query.filter(
            PurchaseInvoice.status.in_(["POSTED", "PARTIALLY_PAID", "OVERDUE"]),
            PurchaseInvoice.due_date < overdue_on,
        )
    return query.order_by(PurchaseInvoice.invoice_date.desc(), PurchaseInvoice.id.desc()).all()


def create_purchase_invoice(db: Session, payload: dict) -> PurchaseInvoice:
    require_vendor(db, payload.get("vendor_id"))
    _check_debit_account(db, payload.get("debit_account_id"))
    invoice_date = payload.get("invoice_date") or date.today()
    lines, totals = build_document_lines(db, PurchaseInvoiceLine, payload.get("lines") or [], price_field="purchase_price")

    bill = PurchaseInvoice(
        invoice_no=next_document_number(db, PurchaseInvoice.invoice_no, "PINV", invoice_date.year),
        vendor_invoice_number=payload.get("vendor_invoice_number"),
        vendor_id=payload["vendor_id"],
        purchase_order_id=payload.get("purchase_order_id"),
        invoice_date=invoice_date,
        due_date=payload.get("due_date") or invoice_date,
        debit_account_id=payload.get("debit_account_id"),
        status="DRAFT",
        notes=payload.get("notes"),
        amount_paid=ZERO,
    )
    bill.lines = lines
    _apply_totals(bill, totals)
    db.add(bill)
    db.flush()
    logger.info("Created purchase invoice %s (id=%s) grand_total=%s", bill.invoice_no, bill.id, bill.grand_total)
    return bill


def update_purchase_invoice(db: Session, bill: PurchaseInvoice, payload: dict) -> PurchaseInvoice:
    if bill.status != "DRAFT":
        raise PolicyError("Only draft purchase invoices can be edited.")

    if "vendor_id" in payload:
        require_vendor(db, payload["vendor_id"])
    if "debit_account_id" in payload:
        _check_debit_account(db, payload["debit_account_id"])
    lines_payload = payload.pop("lines", None)
    for key in ("vendor_id", "vendor_invoice_number", "invoice_date", "due_date", "debit_account_id", "notes"):
        if key in payload:
            setattr(bill, key, payload[key])

    if lines_payload is not None:
        lines, totals = build_document_lines(db, PurchaseInvoiceLine, lines_payload, price_field="purchase_price")
        bill.lines.clear()
        db.flush()
        bill.lines = lines
        _apply_totals(bill, totals)
    db.flush()
    return bill


def post_purchase_invoice(db: Session, bill: PurchaseInvoice) -> PurchaseInvoice:
    if bill.status != "DRAFT":
        raise PolicyError(f"Cannot post purchase invoice in {bill.status} status.")
    if not bill.lines:
        raise ValidationError({"lines": "At least one line item is required."})
    if Decimal(bill.grand_total or 0) <= 0:
        raise ValueError("Cannot post a purchase invoice with a zero total.")

    vendor_name = bill.vendor.name if bill.vendor else f"Vendor #{bill.vendor_id}"
    description = f"Purchase Invoice {bill.invoice_no} - {vendor_name}"
    lines = build_bill_entry(
        accounts_payable_id=get_account_by_code(db, ACCOUNTS_PAYABLE_CODE).id,
        purchase_account_id=bill.debit_account_id or get_account_by_code(db, INVENTORY_CODE).id,
        input_tax_account_id=get_account_by_code(db, INPUT_TAX_CODE).id,
        subtotal=Decimal(bill.subtotal),
        total_discount=Decimal(bill.total_discount),
        total_tax=Decimal(bill.total_tax),
        grand_total=Decimal(bill.grand_total),
        description=description,
    )
    entry = create_journal_entry(
        db,
        entry_date=bill.invoice_date,
        description=description,
        lines=lines,
        entry_type="PURCHASE",
        reference_type="PURCHASE_INVOICE",
        reference_id=bill.id,
        reference_no=bill.invoice_no,
    )
    post_journal_entry(db, entry)

    bill.journal_entry = entry
    bill.status = "POSTED"
    bill.posted_at = datetime.utcnow()
    refresh_invoice_status(bill)
    db.flush()
    logger.info("Posted purchase invoice %s with journal entry %s", bill.invoice_no, entry.entry_no)
    return bill


def record_bill_payment(
    db: Session,
    bill: PurchaseInvoice,
    amount: Decimal,
    *,
    payment_date: Optional[date] = None,
    reference: Optional[str] = None,
    account_id: Optional[int] = None,
) -> PurchaseInvoice:
    """Pays the vendor through a posted payment document."""
    from ledgerbook.payments.service import create_payment, post_payment

    ensure_payment_allowed(bill, amount)
    payment = create_payment(
        db,
        {
            "payment_type": "PAYMENT",
            "payment_date": payment_date or date.today(),
            "vendor_id": bill.vendor_id,
            "purchase_invoice_id": bill.id,
            "amount": amount,
            "account_id": account_id or get_account_by_code(db, CASH_ACCOUNT_CODE).id,
            "reference": reference or bill.vendor_invoice_number or bill.invoice_no,
        },
    )
    post_payment(db, payment)
    logger.info("Paid %s on purchase invoice %s; amount due %s", amount, bill.invoice_no, bill.amount_due)
    return bill


def cancel_purchase_invoice(db: Session, bill: PurchaseInvoice, reason: Optional[str] = None) -> PurchaseInvoice:
    if bill.status == "CANCELLED":
        raise PolicyError("Purchase invoice is already cancelled.")
    if Decimal(bill.amount_paid or 0) > 0:
        raise PolicyError("Cannot cancel purchase invoice with payments. Cancel its payments first.")

    if bill.journal_entry is not None and bill.journal_entry.status == "POSTED":
        reverse_journal_entry(db, bill.journal_entry)

    bill.status = "CANCELLED"
    bill.amount_due = ZERO
    bill.cancelled_at = datetime.utcnow()
    bill.cancellation_reason = reason
    db.flush()
    logger.info("Cancelled purchase invoice %s", bill.invoice_no)
    return bill


def create_bill_from_purchase_order(db: Session, po: PurchaseOrder, payload: dict) -> PurchaseInvoice:
    """Draft bill carrying the order's lines at the ordered prices, discounts and tax rates."""
    if po.status not in BILLABLE_PO_STATUSES:
        raise PolicyError("Purchase order must be received before creating a bill.")
    existing = (
        db.query(PurchaseInvoice)
        .filter(PurchaseInvoice.purchase_order_id == po.id, PurchaseInvoice.status != "CANCELLED")
        .first()
    )
    if existing is not None:
        raise PolicyError(f"Purchase order {po.order_number} is already billed on {existing.invoice_no}.")

    errors: Dict[str, str] = {}
    for field in ("vendor_invoice_number", "invoice_date", "due_date"):
        if not payload.get(field):
            errors[field] = "This field is required to bill a purchase order."
    if errors:
        raise ValidationError(errors)

    bill = create_purchase_invoice(
        db,
        {
            "vendor_id": po.vendor_id,
            "purchase_order_id": po.id,
            "vendor_invoice_number": payload["vendor_invoice_number"],
            "invoice_date": payload["invoice_date"],
            "due_date": payload["due_date"],
            "debit_account_id": payload.get("debit_account_id"),
            "notes": payload.get("notes") or f"Bill created from PO {po.order_number}",
            "lines": [
                {
                    "item_id": line.item_id,
                    "description": line.description,
                    "quantity": line.quantity,
                    "unit_price": line.unit_price,
                    "discount_percentage": line.discount_percentage,
                    "tax_percentage": line.tax_percentage,
                }
                for line in po.lines
            ],
        },
    )
    logger.info("Billed purchase order %s on %s", po.order_number, bill.invoice_no)
    return bill
