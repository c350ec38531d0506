from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from ledgerbook.accounting.posting import build_invoice_entry
from ledgerbook.accounting.service import (
    ACCOUNTS_RECEIVABLE_CODE,
    CASH_ACCOUNT_CODE,
    SALES_REVENUE_CODE,
    SALES_TAX_PAYABLE_CODE,
    create_journal_entry,
    get_account_by_code,
    post_journal_entry,
    reverse_journal_entry,
)
from ledgerbook.errors import NotFoundError, PolicyError, ValidationError
from ledgerbook.models import Customer, Item, SalesInvoice, SalesInvoiceLine
from ledgerbook.sales.calculations import (
    DocumentTotals,
    LineItemInput,
    aggregate_document_totals,
    calculate_line,
    line_input_from_payload,
    validate_line_items,
)
from ledgerbook.utils.money import ZERO, quantize_money
from ledgerbook.utils.numbering import next_document_number

logger = logging.getLogger(__name__)

OPEN_STATUSES = {"POSTED", "PARTIALLY_PAID", "OVERDUE"}


def _resolve_line_defaults(db: Session, lines_payload: Sequence[dict], price_field: str) -> Tuple[List[dict], Dict[str, str]]:
    """Fills unit price, tax and description from the item master where the line leaves them out."""
    resolved: List[dict] = []
    errors: Dict[str, str] = {}
    item_ids = {line.get("item_id") for line in lines_payload if line.get("item_id")}
    items = {item.id: item for item in db.query(Item).filter(Item.id.in_(item_ids)).all()} if item_ids else {}

    for index, line in enumerate(lines_payload):
        data = dict(line)
        item = items.get(data.get("item_id"))
        if not data.get("item_id"):
            errors[f"lines[{index}].item_id"] = "Item is required."
        elif item is None:
            errors[f"lines[{index}].item_id"] = "Item not found."
        else:
            if data.get("unit_price") is None:
                data["unit_price"] = getattr(item, price_field)
            if data.get("tax_percentage") is None:
                data["tax_percentage"] = item.tax_percentage
            data["description"] = data.get("description") or item.name
        resolved.append(data)
    return resolved, errors


def build_document_lines(
    db: Session,
    line_model,
    lines_payload: Sequence[dict],
    *,
    price_field: str = "unit_price",
) -> Tuple[list, DocumentTotals]:
    lines_payload, errors = _resolve_line_defaults(db, lines_payload, price_field)
    try:
        validate_line_items(lines_payload)
    except ValidationError as exc:
        errors.update(exc.errors)
    if errors:
        raise ValidationError(errors)

    inputs: List[LineItemInput] = []
    lines = []
    for line_no, data in enumerate(lines_payload, start=1):
        line_input = line_input_from_payload(data)
        amounts = calculate_line(line_input).rounded()
        inputs.append(line_input)
        lines.append(
            line_model(
                line_no=line_no,
                item_id=data.get("item_id"),
                description=data.get("description"),
                quantity=line_input.quantity,
                unit_price=line_input.unit_price,
                discount_percentage=line_input.discount_percentage,
                discount_amount=amounts.discount_amount,
                tax_percentage=line_input.tax_percentage,
                tax_amount=amounts.tax_amount,
                line_total=amounts.line_total,
            )
        )
    return lines, aggregate_document_totals(inputs).rounded()


def preview_line_items(lines_payload: Sequence[dict]) -> dict:
    """Stateless form preview; non-numeric input counts as zero rather than failing."""
    inputs = [line_input_from_payload(data) for data in lines_payload]
    lines = []
    for line_input in inputs:
        amounts = calculate_line(line_input).rounded()
        lines.append(
            {
                "gross_amount": amounts.gross_amount,
                "discount_amount": amounts.discount_amount,
                "taxable_amount": amounts.taxable_amount,
                "tax_amount": amounts.tax_amount,
                "line_total": amounts.line_total,
            }
        )
    totals = aggregate_document_totals(inputs).rounded()
    return {
        "lines": lines,
        "totals": {
            "subtotal": totals.subtotal,
            "total_discount": totals.total_discount,
            "total_tax": totals.total_tax,
            "grand_total": totals.grand_total,
        },
    }


def _apply_totals(invoice: SalesInvoice, totals: DocumentTotals) -> None:
    invoice.subtotal = totals.subtotal
    invoice.total_discount = totals.total_discount
    invoice.total_tax = totals.total_tax
    invoice.grand_total = totals.grand_total
    invoice.amount_due = quantize_money(totals.grand_total - Decimal(invoice.amount_paid or 0))


def require_customer(db: Session, customer_id: Optional[int]) -> Customer:
    if not customer_id:
        raise ValidationError({"customer_id": "Customer is required."})
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise ValidationError({"customer_id": "Customer not found."})
    if not customer.is_active:
        raise ValidationError({"customer_id": "Customer is inactive."})
    return customer


def get_invoice(db: Session, invoice_id: int) -> SalesInvoice:
    invoice = (
        db.query(SalesInvoice)
        .options(selectinload(SalesInvoice.lines), selectinload(SalesInvoice.customer))
        .filter(SalesInvoice.id == invoice_id)
        .first()
    )
    if not invoice:
        raise NotFoundError("Sales invoice not found.")
    return invoice


def list_customers(db: Session, search: Optional[str]) -> Sequence[Customer]:
    query = db.query(Customer)
    if search:
        like = f"%{search.lower()}%"
        query = query.filter(func.lower(Customer.name).like(like))
    return query.order_by(Customer.name).all()


def list_items(db: Session, search: Optional[str]) -> Sequence[Item]:
    query = db.query(Item)
    if search:
        like = f"%{search.lower()}%"
        query = query.filter(func.lower(Item.name).like(like) | func.lower(Item.sku).like(like))
    return query.order_by(Item.name).all()


def list_invoices(
    db: Session,
    status: Optional[str] = None,
    customer_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> Sequence[SalesInvoice]:
    query = db.query(SalesInvoice).options(selectinload(SalesInvoice.customer))
    if status:
        query = query.filter(SalesInvoice.status == status.upper())
    if customer_id:
        query = query.filter(SalesInvoice.customer_id == customer_id)
    if start_date:
        query = query.filter(SalesInvoice.invoice_date >= start_date)
    if end_date:
        query = query.filter(SalesInvoice.invoice_date <= end_date)
    return query.order_by(SalesInvoice.invoice_date.desc(), SalesInvoice.id.desc()).all()


def create_invoice(db: Session, payload: dict) -> SalesInvoice:
    require_customer(db, payload.get("customer_id"))
    invoice_date = payload.get("invoice_date") or date.today()
    lines, totals = build_document_lines(db, SalesInvoiceLine, payload.get("lines") or [])

    invoice = SalesInvoice(
        invoice_no=next_document_number(db, SalesInvoice.invoice_no, "INV", invoice_date.year),
        customer_id=payload["customer_id"],
        invoice_date=invoice_date,
        due_date=payload.get("due_date") or invoice_date,
        status="DRAFT",
        notes=payload.get("notes"),
        amount_paid=ZERO,
    )
    invoice.lines = lines
    _apply_totals(invoice, totals)
    db.add(invoice)
    db.flush()
    logger.info("Created sales invoice %s (id=%s) grand_total=%s", invoice.invoice_no, invoice.id, invoice.grand_total)
    return invoice


def update_invoice(db: Session, invoice: SalesInvoice, payload: dict) -> SalesInvoice:
    if invoice.status != "DRAFT":
        raise PolicyError("Only draft invoices can be edited.")

    if "customer_id" in payload:
        require_customer(db, payload["customer_id"])
    lines_payload = payload.pop("lines", None)
    for key in ("customer_id", "invoice_date", "due_date", "notes"):
        if key in payload:
            setattr(invoice, key, payload[key])

    if lines_payload is not None:
        lines, totals = build_document_lines(db, SalesInvoiceLine, lines_payload)
        invoice.lines.clear()
        db.flush()
        invoice.lines = lines
        _apply_totals(invoice, totals)
    db.flush()
    return invoice


def refresh_invoice_status(invoice: SalesInvoice, today: Optional[date] = None) -> None:
    if invoice.status in {"DRAFT", "CANCELLED"}:
        return
    today = today or date.today()
    if Decimal(invoice.amount_due or 0) <= 0:
        invoice.status = "PAID"
    elif Decimal(invoice.amount_paid or 0) > 0:
        invoice.status = "PARTIALLY_PAID"
    elif invoice.due_date and invoice.due_date < today:
        invoice.status = "OVERDUE"
    else:
        invoice.status = "POSTED"


def post_invoice(db: Session, invoice: SalesInvoice) -> SalesInvoice:
    if invoice.status != "DRAFT":
        raise PolicyError(f"Cannot post invoice in {invoice.status} status.")
    if not invoice.lines:
        raise ValidationError({"lines": "At least one line item is required."})
    if Decimal(invoice.grand_total or 0) <= 0:
        raise ValueError("Cannot post an invoice with a zero total.")

    customer_name = invoice.customer.name if invoice.customer else f"Customer #{invoice.customer_id}"
    description = f"Sales Invoice {invoice.invoice_no} - {customer_name}"
    lines = build_invoice_entry(
        accounts_receivable_id=get_account_by_code(db, ACCOUNTS_RECEIVABLE_CODE).id,
        revenue_account_id=get_account_by_code(db, SALES_REVENUE_CODE).id,
        sales_tax_account_id=get_account_by_code(db, SALES_TAX_PAYABLE_CODE).id,
        subtotal=Decimal(invoice.subtotal),
        total_discount=Decimal(invoice.total_discount),
        total_tax=Decimal(invoice.total_tax),
        grand_total=Decimal(invoice.grand_total),
        description=description,
    )
    entry = create_journal_entry(
        db,
        entry_date=invoice.invoice_date,
        description=description,
        lines=lines,
        entry_type="SALES",
        reference_type="SALES_INVOICE",
        reference_id=invoice.id,
        reference_no=invoice.invoice_no,
    )
    post_journal_entry(db, entry)

    invoice.journal_entry = entry
    invoice.status = "POSTED"
    invoice.posted_at = datetime.utcnow()
    invoice.amount_due = quantize_money(Decimal(invoice.grand_total) - Decimal(invoice.amount_paid or 0))
    refresh_invoice_status(invoice)
    db.flush()
    logger.info("Posted sales invoice %s with journal entry %s", invoice.invoice_no, entry.entry_no)
    return invoice


def ensure_payment_allowed(invoice, amount) -> Decimal:
    """Shared by sales and purchase invoices; both carry the same payment columns and statuses."""
    if invoice.status not in OPEN_STATUSES:
        raise PolicyError(f"Cannot record payment for an invoice in {invoice.status} status.")
    amount = Decimal(amount)
    if amount <= 0:
        raise ValidationError({"amount": "Payment amount must be greater than 0."})
    if amount > Decimal(invoice.amount_due or 0):
        raise ValidationError({"amount": "Payment amount cannot exceed amount due."})
    return amount


def apply_invoice_payment(invoice, amount: Decimal) -> None:
    invoice.amount_paid = quantize_money(Decimal(invoice.amount_paid or 0) + Decimal(amount))
    invoice.amount_due = quantize_money(Decimal(invoice.grand_total) - invoice.amount_paid)
    refresh_invoice_status(invoice)


def record_invoice_payment(
    db: Session,
    invoice: SalesInvoice,
    amount: Decimal,
    *,
    payment_date: Optional[date] = None,
    reference: Optional[str] = None,
) -> SalesInvoice:
    """Receives cash against the invoice through a posted receipt."""
    from ledgerbook.payments.service import create_payment, post_payment

    ensure_payment_allowed(invoice, amount)
    payment = create_payment(
        db,
        {
            "payment_type": "RECEIPT",
            "payment_date": payment_date or date.today(),
            "customer_id": invoice.customer_id,
            "sales_invoice_id": invoice.id,
            "amount": amount,
            "account_id": get_account_by_code(db, CASH_ACCOUNT_CODE).id,
            "reference": reference or invoice.invoice_no,
        },
    )
    post_payment(db, payment)
    logger.info("Recorded payment %s on invoice %s; amount due %s", amount, invoice.invoice_no, invoice.amount_due)
    return invoice


def cancel_invoice(db: Session, invoice: SalesInvoice, reason: Optional[str] = None) -> SalesInvoice:
    if invoice.status == "CANCELLED":
        raise PolicyError("Invoice is already cancelled.")
    if Decimal(invoice.amount_paid or 0) > 0:
        raise PolicyError("Cannot cancel invoice with payments. Cancel its payments first.")

    if invoice.journal_entry is not None and invoice.journal_entry.status == "POSTED":
        reverse_journal_entry(db, invoice.journal_entry)

    invoice.status = "CANCELLED"
    invoice.amount_due = ZERO
    invoice.cancelled_at = datetime.utcnow()
    invoice.cancellation_reason = reason
    db.flush()
    logger.info("Cancelled sales invoice %s", invoice.invoice_no)
    return invoice
