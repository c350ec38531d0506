from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ledgerbook.db import get_db
from ledgerbook.models import PurchaseOrder, Vendor
from ledgerbook.purchase_invoices.schemas import BillFromPurchaseOrder, PurchaseInvoiceResponse
from ledgerbook.purchase_invoices.service import create_bill_from_purchase_order
from ledgerbook.purchasing import schemas
from ledgerbook.purchasing.service import (
    approve_purchase_order,
    cancel_purchase_order,
    create_purchase_order,
    get_purchase_order,
    list_purchase_orders,
    receive_purchase_order,
    send_purchase_order,
    submit_purchase_order,
    update_purchase_order,
)
from ledgerbook.routers.common import to_http_exception

router = APIRouter(prefix="/api", tags=["purchasing"])


@router.get("/vendors", response_model=List[schemas.VendorResponse])
def get_vendors(active: Optional[bool] = None, db: Session = Depends(get_db)):
    query = db.query(Vendor)
    if active is not None:
        query = query.filter(Vendor.is_active.is_(active))
    return query.order_by(Vendor.name).all()


@router.post("/vendors", response_model=schemas.VendorResponse, status_code=status.HTTP_201_CREATED)
def create_vendor(payload: schemas.VendorCreate, db: Session = Depends(get_db)):
    vendor = Vendor(**payload.model_dump())
    db.add(vendor)
    db.commit()
    db.refresh(vendor)
    return vendor


@router.get("/vendors/{vendor_id}", response_model=schemas.VendorResponse)
def get_vendor(vendor_id: int, db: Session = Depends(get_db)):
    vendor = db.query(Vendor).filter(Vendor.id == vendor_id).first()
    if not vendor:
        raise HTTPException(status_code=404, detail="Vendor not found.")
    return vendor


@router.put("/vendors/{vendor_id}", response_model=schemas.VendorResponse)
def update_vendor(vendor_id: int, payload: schemas.VendorUpdate, db: Session = Depends(get_db)):
    vendor = db.query(Vendor).filter(Vendor.id == vendor_id).first()
    if not vendor:
        raise HTTPException(status_code=404, detail="Vendor not found.")
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(vendor, key, value)
    db.commit()
    db.refresh(vendor)
    return vendor


@router.delete("/vendors/{vendor_id}", response_model=schemas.VendorResponse)
def archive_vendor(vendor_id: int, db: Session = Depends(get_db)):
    vendor = db.query(Vendor).filter(Vendor.id == vendor_id).first()
    if not vendor:
        raise HTTPException(status_code=404, detail="Vendor not found.")
    vendor.is_active = False
    db.commit()
    db.refresh(vendor)
    return vendor


@router.get("/purchase-orders", response_model=List[schemas.PurchaseOrderListResponse])
def get_purchase_orders(
    status: Optional[str] = None,
    vendor_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    return [
        schemas.PurchaseOrderListResponse(
            id=po.id,
            order_number=po.order_number,
            vendor_name=po.vendor.name if po.vendor else f"Vendor #{po.vendor_id}",
            order_date=po.order_date,
            status=po.status,
            total_amount=po.total_amount,
        )
        for po in list_purchase_orders(db, status, vendor_id)
    ]


@router.post("/purchase-orders", response_model=schemas.PurchaseOrderResponse, status_code=status.HTTP_201_CREATED)
def create_purchase_order_endpoint(payload: schemas.PurchaseOrderCreate, db: Session = Depends(get_db)):
    try:
        po = create_purchase_order(db, payload.model_dump())
    except (ValueError, LookupError) as exc:
        raise to_http_exception(exc)
    db.commit()
    db.refresh(po)
    return po


@router.get("/purchase-orders/{purchase_order_id}", response_model=schemas.PurchaseOrderResponse)
def get_purchase_order_endpoint(purchase_order_id: int, db: Session = Depends(get_db)):
    try:
        return get_purchase_order(db, purchase_order_id)
    except LookupError as exc:
        raise to_http_exception(exc)


@router.put("/purchase-orders/{purchase_order_id}", response_model=schemas.PurchaseOrderResponse)
def update_purchase_order_endpoint(
    purchase_order_id: int,
    payload: schemas.PurchaseOrderUpdate,
    db: Session = Depends(get_db),
):
    try:
        po = get_purchase_order(db, purchase_order_id)
        update_purchase_order(db, po, payload.model_dump(exclude_unset=True))
    except (ValueError, LookupError) as exc:
        raise to_http_exception(exc)
    db.commit()
    db.refresh(po)
    return po


def _run_action(db: Session, purchase_order_id: int, action, *args) -> PurchaseOrder:
    try:
        po = get_purchase_order(db, purchase_order_id)
        action(db, po, *args)
    except (ValueError, LookupError) as exc:
        raise to_http_exception(exc)
    db.commit()
    db.refresh(po)
    return po


@router.post("/purchase-orders/{purchase_order_id}/submit", response_model=schemas.PurchaseOrderResponse)
def submit_purchase_order_endpoint(purchase_order_id: int, db: Session = Depends(get_db)):
    return _run_action(db, purchase_order_id, submit_purchase_order)


@router.post("/purchase-orders/{purchase_order_id}/approve", response_model=schemas.PurchaseOrderResponse)
def approve_purchase_order_endpoint(purchase_order_id: int, db: Session = Depends(get_db)):
    return _run_action(db, purchase_order_id, approve_purchase_order)


@router.post("/purchase-orders/{purchase_order_id}/send", response_model=schemas.PurchaseOrderResponse)
def send_purchase_order_endpoint(purchase_order_id: int, db: Session = Depends(get_db)):
    return _run_action(db, purchase_order_id, send_purchase_order)


@router.post("/purchase-orders/{purchase_order_id}/receive", response_model=schemas.PurchaseOrderResponse)
def receive_purchase_order_endpoint(
    purchase_order_id: int,
    payload: schemas.PurchaseOrderReceive,
    db: Session = Depends(get_db),
):
    return _run_action(db, purchase_order_id, receive_purchase_order, payload.model_dump())


@router.post("/purchase-orders/{purchase_order_id}/cancel", response_model=schemas.PurchaseOrderResponse)
def cancel_purchase_order_endpoint(purchase_order_id: int, db: Session = Depends(get_db)):
    return _run_action(db, purchase_order_id, cancel_purchase_order)


@router.post(
    "/purchase-orders/{purchase_order_id}/create-bill",
    response_model=PurchaseInvoiceResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_bill_endpoint(
    purchase_order_id: int,
    payload: BillFromPurchaseOrder,
    db: Session = Depends(get_db),
):
    try:
        po = get_purchase_order(db, purchase_order_id)
        bill = create_bill_from_purchase_order(db, po, payload.model_dump())
    except (ValueError, LookupError) as exc:
        raise to_http_exception(exc)
    db.commit()
    db.refresh(bill)
    return bill
