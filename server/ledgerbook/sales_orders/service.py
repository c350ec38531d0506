import logging
from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from sqlalchemy.orm import Session, selectinload

from ledgerbook.errors import NotFoundError, PolicyError, ValidationError
from ledgerbook.models import SalesInvoice, SalesOrder, SalesOrderLine
from ledgerbook.sales.calculations import DocumentTotals
from ledgerbook.sales.service import build_document_lines, create_invoice, require_customer
from ledgerbook.utils.numbering import next_document_number

logger = logging.getLogger(__name__)

# Days until an invoice raised from the order falls due.
PAYMENT_TERMS = {"CASH": 0, "NET_7": 7, "NET_15": 15, "NET_30": 30, "NET_60": 60, "NET_90": 90}


def _apply_totals(order: SalesOrder, totals: DocumentTotals) -> None:
    order.subtotal = totals.subtotal
    order.total_discount = totals.total_discount
    order.total_tax = totals.total_tax
    order.grand_total = totals.grand_total


def _check_payment_terms(value: Optional[str]) -> str:
    terms = (value or "CASH").upper()
    if terms not in PAYMENT_TERMS:
        raise ValidationError({"payment_terms": f"Payment terms must be one of {', '.join(PAYMENT_TERMS)}."})
    return terms


def get_sales_order(db: Session, order_id: int) -> SalesOrder:
    order = (
        db.query(SalesOrder)
        .options(selectinload(SalesOrder.lines), selectinload(SalesOrder.customer))
        .filter(SalesOrder.id == order_id)
        .first()
    )
    if not order:
        raise NotFoundError("Sales order not found.")
    return order


def list_sales_orders(
    db: Session,
    status: Optional[str] = None,
    customer_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> Sequence[SalesOrder]:
    query = db.query(SalesOrder).options(selectinload(SalesOrder.customer))
    if status:
        query = query.filter(SalesOrder.status == status.upper())
    if customer_id:
        query = query.filter(SalesOrder.customer_id == customer_id)
    if start_date:
        query = query.filter(SalesOrder.order_date >= start_date)
    if end_date:
        query = query.filter(SalesOrder.order_date <= end_date)
    return query.order_by(SalesOrder.order_date.desc(), SalesOrder.id.desc()).all()


def create_sales_order(db: Session, payload: dict) -> SalesOrder:
    require_customer(db, payload.get("customer_id"))
    terms = _check_payment_terms(payload.get("payment_terms"))
    order_date = payload.get("order_date") or date.today()
    lines, totals = build_document_lines(db, SalesOrderLine, payload.get("lines") or [])

    order = SalesOrder(
        order_no=next_document_number(db, SalesOrder.order_no, "SO", order_date.year),
        customer_id=payload["customer_id"],
        order_date=order_date,
        expected_delivery_date=payload.get("expected_delivery_date"),
        payment_terms=terms,
        status="DRAFT",
        notes=payload.get("notes"),
    )
    order.lines = lines
    _apply_totals(order, totals)
    db.add(order)
    db.flush()
    logger.info("Created sales order %s (id=%s) grand_total=%s", order.order_no, order.id, order.grand_total)
    return order


def update_sales_order(db: Session, order: SalesOrder, payload: dict) -> SalesOrder:
    if order.status != "DRAFT":
        raise PolicyError("Only draft sales orders can be edited.")

    if "customer_id" in payload:
        require_customer(db, payload["customer_id"])
    if "payment_terms" in payload:
        payload["payment_terms"] = _check_payment_terms(payload["payment_terms"])
    lines_payload = payload.pop("lines", None)
    for key in ("customer_id", "order_date", "expected_delivery_date", "payment_terms", "notes"):
        if key in payload:
            setattr(order, key, payload[key])

    if lines_payload is not None:
        lines, totals = build_document_lines(db, SalesOrderLine, lines_payload)
        order.lines.clear()
        db.flush()
        order.lines = lines
        _apply_totals(order, totals)
    db.flush()
    return order


def confirm_sales_order(db: Session, order: SalesOrder) -> SalesOrder:
    if order.status != "DRAFT":
        raise PolicyError(f"Cannot confirm sales order in {order.status} status.")
    if not order.lines:
        raise ValidationError({"lines": "At least one line item is required."})
    order.status = "CONFIRMED"
    order.confirmed_at = datetime.utcnow()
    db.flush()
    logger.info("Confirmed sales order %s", order.order_no)
    return order


def cancel_sales_order(db: Session, order: SalesOrder, reason: Optional[str] = None) -> SalesOrder:
    if order.status not in {"DRAFT", "CONFIRMED"}:
        raise PolicyError(f"Cannot cancel sales order in {order.status} status.")
    order.status = "CANCELLED"
    order.cancelled_at = datetime.utcnow()
    order.cancellation_reason = reason
    db.flush()
    logger.info("Cancelled sales order %s", order.order_no)
    return order


def create_invoice_from_order(db: Session, order: SalesOrder, invoice_date: Optional[date] = None) -> SalesInvoice:
    """Draft invoice for a confirmed order; the due date follows the order's payment terms."""
    if order.status != "CONFIRMED":
        raise PolicyError(f"Cannot invoice sales order in {order.status} status.")
    if order.invoice_id is not None:
        raise PolicyError(f"Sales order {order.order_no} is already invoiced.")

    invoice_date = invoice_date or date.today()
    invoice = create_invoice(
        db,
        {
            "customer_id": order.customer_id,
            "invoice_date": invoice_date,
            "due_date": invoice_date + timedelta(days=PAYMENT_TERMS.get(order.payment_terms, 0)),
            "notes": order.notes or f"Invoice for sales order {order.order_no}",
            "lines": [
                {
                    "item_id": line.item_id,
                    "description": line.description,
                    "quantity": line.quantity,
                    "unit_price": line.unit_price,
                    "discount_percentage": line.discount_percentage,
                    "tax_percentage": line.tax_percentage,
                }
                for line in order.lines
            ],
        },
    )
    order.invoice = invoice
    order.status = "INVOICED"
    order.invoiced_at = datetime.utcnow()
    db.flush()
    logger.info("Invoiced sales order %s on %s", order.order_no, invoice.invoice_no)
    return invoice
