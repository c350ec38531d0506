from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ledgerbook.db import get_db
from ledgerbook.purchase_invoices import schemas
from ledgerbook.purchase_invoices.service import (
    cancel_purchase_invoice,
    create_purchase_invoice,
    get_purchase_invoice,
    list_purchase_invoices,
    post_purchase_invoice,
    record_bill_payment,
    update_purchase_invoice,
)
from ledgerbook.routers.common import to_http_exception

router = APIRouter(prefix="/api/purchase-invoices", tags=["purchase-invoices"])


@router.get("", response_model=List[schemas.PurchaseInvoiceListResponse])
def get_purchase_invoices(
    status: Optional[str] = None,
    vendor_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    overdue: bool = False,
    db: Session = Depends(get_db),
):
    bills = list_purchase_invoices(db, status, vendor_id, start_date, end_date, date.today() if overdue else None)
    return [
        schemas.PurchaseInvoiceListResponse(
            id=bill.id,
            invoice_no=bill.invoice_no,
            vendor_invoice_number=bill.vendor_invoice_number,
            vendor_id=bill.vendor_id,
            vendor_name=bill.vendor.name if bill.vendor else f"Vendor #{bill.vendor_id}",
            invoice_date=bill.invoice_date,
            due_date=bill.due_date,
            status=bill.status,
            grand_total=bill.grand_total,
            amount_due=bill.amount_due,
        )
        for bill in bills
    ]


@router.post("", response_model=schemas.PurchaseInvoiceResponse, status_code=status.HTTP_201_CREATED)
def create_purchase_invoice_endpoint(payload: schemas.PurchaseInvoiceCreate, db: Session = Depends(get_db)):
    try:
        bill = create_purchase_invoice(db, payload.model_dump())
    except (ValueError, LookupError) as exc:
        raise to_http_exception(exc)
    db.commit()
    db.refresh(bill)
    return bill


@router.get("/{invoice_id}", response_model=schemas.PurchaseInvoiceResponse)
def get_purchase_invoice_endpoint(invoice_id: int, db: Session = Depends(get_db)):
    try:
        return get_purchase_invoice(db, invoice_id)
    except LookupError as exc:
        raise to_http_exception(exc)


@router.put("/{invoice_id}", response_model=schemas.PurchaseInvoiceResponse)
def update_purchase_invoice_endpoint(
    invoice_id: int,
    payload: schemas.PurchaseInvoiceUpdate,
    db: Session = Depends(get_db),
):
    try:
        bill = get_purchase_invoice(db, invoice_id)
        update_purchase_invoice(db, bill, payload.model_dump(exclude_unset=True))
    except (ValueError, LookupError) as exc:
        raise to_http_exception(exc)
    db.commit()
    db.refresh(bill)
    return bill


@router.post("/{invoice_id}/post", response_model=schemas.PurchaseInvoiceResponse)
def post_purchase_invoice_endpoint(invoice_id: int, db: Session = Depends(get_db)):
    try:
        bill = get_purchase_invoice(db, invoice_id)
        post_purchase_invoice(db, bill)
    except (ValueError, LookupError) as exc:
        raise to_http_exception(exc)
    db.commit()
    db.refresh(bill)
    return bill


@router.post("/{invoice_id}/payments", response_model=schemas.PurchaseInvoiceResponse)
def record_purchase_invoice_payment(
    invoice_id: int,
    payload: schemas.BillPaymentCreate,
    db: Session = Depends(get_db),
):
    try:
        bill = get_purchase_invoice(db, invoice_id)
        record_bill_payment(
            db,
            bill,
            payload.amount,
            payment_date=payload.payment_date,
            reference=payload.reference,
            account_id=payload.account_id,
        )
    except (ValueError, LookupError) as exc:
        raise to_http_exception(exc)
    db.commit()
    db.refresh(bill)
    return bill


@router.post("/{invoice_id}/cancel", response_model=schemas.PurchaseInvoiceResponse)
def cancel_purchase_invoice_endpoint(
    invoice_id: int,
    payload: Optional[schemas.PurchaseInvoiceCancel] = None,
    db: Session = Depends(get_db),
):
    try:
        bill = get_purchase_invoice(db, invoice_id)
        cancel_purchase_invoice(db, bill, payload.reason if payload else None)
    except (ValueError, LookupError) as exc:
        raise to_http_exception(exc)
    db.commit()
    db.refresh(bill)
    return bill
