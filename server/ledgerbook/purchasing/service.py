import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Sequence

from sqlalchemy.orm import Session, selectinload

from ledgerbook.errors import NotFoundError, PolicyError, ValidationError
from ledgerbook.models import PurchaseOrder, PurchaseOrderLine, Vendor
from ledgerbook.sales.calculations import DocumentTotals
from ledgerbook.sales.service import build_document_lines
from ledgerbook.utils.numbering import next_document_number

logger = logging.getLogger(__name__)

EDITABLE_STATUSES = {"DRAFT", "PENDING_APPROVAL"}
RECEIVABLE_STATUSES = {"SENT", "PARTIALLY_RECEIVED"}
TRANSITIONS = {
    "DRAFT": {"PENDING_APPROVAL", "CANCELLED"},
    "PENDING_APPROVAL": {"APPROVED", "CANCELLED"},
    "APPROVED": {"SENT", "CANCELLED"},
    "SENT": {"PARTIALLY_RECEIVED", "RECEIVED", "CANCELLED"},
    "PARTIALLY_RECEIVED": {"PARTIALLY_RECEIVED", "RECEIVED", "CANCELLED"},
    "RECEIVED": set(),
    "CANCELLED": set(),
}


def _transition(po: PurchaseOrder, target: str) -> None:
    if target not in TRANSITIONS.get(po.status, set()):
        raise PolicyError(f"Cannot move purchase order {po.order_number} from {po.status} to {target}.")
    logger.info("Purchase order %s: %s -> %s", po.order_number, po.status, target)
    po.status = target


def _apply_totals(po: PurchaseOrder, totals: DocumentTotals) -> None:
    po.subtotal = totals.subtotal
    po.total_discount = totals.total_discount
    po.total_tax = totals.total_tax
    po.total_amount = totals.grand_total


def require_vendor(db: Session, vendor_id: Optional[int]) -> Vendor:
    if not vendor_id:
        raise ValidationError({"vendor_id": "Vendor is required."})
    vendor = db.query(Vendor).filter(Vendor.id == vendor_id).first()
    if not vendor:
        raise ValidationError({"vendor_id": "Vendor not found."})
    if not vendor.is_active:
        raise ValidationError({"vendor_id": "Vendor is inactive."})
    return vendor


def get_purchase_order(db: Session, po_id: int) -> PurchaseOrder:
    po = (
        db.query(PurchaseOrder)
        .options(selectinload(PurchaseOrder.lines), selectinload(PurchaseOrder.vendor))
        .filter(PurchaseOrder.id == po_id)
        .first()
    )
    if not po:
        raise NotFoundError("Purchase order not found.")
    return po


def list_purchase_orders(db: Session, status: Optional[str] = None, vendor_id: Optional[int] = None) -> Sequence[PurchaseOrder]:
    query = db.query(PurchaseOrder).options(selectinload(PurchaseOrder.vendor))
    if status:
        query = query.filter(PurchaseOrder.status == status.upper())
    if vendor_id:
        query = query.filter(PurchaseOrder.vendor_id == vendor_id)
    return query.order_by(PurchaseOrder.order_date.desc(), PurchaseOrder.id.desc()).all()


def create_purchase_order(db: Session, payload: dict) -> PurchaseOrder:
    require_vendor(db, payload.get("vendor_id"))
    order_date = payload.get("order_date") or date.today()
    lines, totals = build_document_lines(db, PurchaseOrderLine, payload.get("lines") or [], price_field="purchase_price")

    po = PurchaseOrder(
        order_number=next_document_number(db, PurchaseOrder.order_number, "PO", order_date.year),
        vendor_id=payload["vendor_id"],
        order_date=order_date,
        expected_date=payload.get("expected_date"),
        notes=payload.get("notes"),
        status="DRAFT",
    )
    po.lines = lines
    _apply_totals(po, totals)
    db.add(po)
    db.flush()
    logger.info("Created purchase order %s (id=%s) total=%s", po.order_number, po.id, po.total_amount)
    return po


def update_purchase_order(db: Session, po: PurchaseOrder, payload: dict) -> PurchaseOrder:
    if po.status not in EDITABLE_STATUSES:
        raise PolicyError("Only DRAFT or PENDING_APPROVAL purchase orders can be edited.")

    if "vendor_id" in payload:
        require_vendor(db, payload["vendor_id"])
    lines_payload = payload.pop("lines", None)
    for key in ("vendor_id", "order_date", "expected_date", "notes"):
        if key in payload:
            setattr(po, key, payload[key])

    if lines_payload is not None:
        lines, totals = build_document_lines(db, PurchaseOrderLine, lines_payload, price_field="purchase_price")
        po.lines.clear()
        db.flush()
        po.lines = lines
        _apply_totals(po, totals)
    db.flush()
    return po


def submit_purchase_order(db: Session, po: PurchaseOrder) -> PurchaseOrder:
    if not po.lines:
        raise ValidationError({"lines": "Purchase order must include at least one line item."})
    _transition(po, "PENDING_APPROVAL")
    db.flush()
    return po


def approve_purchase_order(db: Session, po: PurchaseOrder) -> PurchaseOrder:
    _transition(po, "APPROVED")
    po.approved_at = datetime.utcnow()
    db.flush()
    return po


def send_purchase_order(db: Session, po: PurchaseOrder) -> PurchaseOrder:
    vendor = po.vendor or db.query(Vendor).filter(Vendor.id == po.vendor_id).first()
    if not vendor or not (vendor.email or vendor.phone):
        raise ValueError("Vendor must have contact info before sending.")
    _transition(po, "SENT")
    po.sent_at = datetime.utcnow()
    db.flush()
    return po


def receive_purchase_order(db: Session, po: PurchaseOrder, payload: dict) -> PurchaseOrder:
    if po.status not in RECEIVABLE_STATUSES:
        raise PolicyError(f"Cannot receive against a purchase order in {po.status} status.")

    errors = {}
    receipts = []
    for index, line_payload in enumerate(payload["lines"]):
        line = next((line for line in po.lines if line.id == line_payload["line_id"]), None)
        if not line:
            errors[f"lines[{index}].line_id"] = "Purchase order line not found."
            continue
        qty = Decimal(line_payload["qty_received"])
        if qty <= 0:
            errors[f"lines[{index}].qty_received"] = "Received quantity must be greater than zero."
        elif qty > line.qty_outstanding:
            errors[f"lines[{index}].qty_received"] = f"Cannot receive more than the {line.qty_outstanding} outstanding."
        else:
            receipts.append((line, qty))
    if errors:
        raise ValidationError(errors)

    for line, qty in receipts:
        line.qty_received = Decimal(line.qty_received or 0) + qty

    if all(line.qty_outstanding <= 0 for line in po.lines):
        _transition(po, "RECEIVED")
    else:
        _transition(po, "PARTIALLY_RECEIVED")
    db.flush()
    return po


def cancel_purchase_order(db: Session, po: PurchaseOrder) -> PurchaseOrder:
    _transition(po, "CANCELLED")
    po.cancelled_at = datetime.utcnow()
    db.flush()
    return po
