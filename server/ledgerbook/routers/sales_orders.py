from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ledgerbook.db import get_db
from ledgerbook.models import SalesOrder
from ledgerbook.routers.common import to_http_exception
from ledgerbook.sales.schemas import SalesInvoiceResponse
from ledgerbook.sales_orders import schemas
from ledgerbook.sales_orders.service import (
    cancel_sales_order,
    confirm_sales_order,
    create_invoice_from_order,
    create_sales_order,
    get_sales_order,
    list_sales_orders,
    update_sales_order,
)

router = APIRouter(prefix="/api/sales-orders", tags=["sales-orders"])


@router.get("", response_model=List[schemas.SalesOrderListResponse])
def get_sales_orders(
    status: Optional[str] = None,
    customer_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
):
    orders = list_sales_orders(db, status, customer_id, start_date, end_date)
    return [
        schemas.SalesOrderListResponse(
            id=order.id,
            order_no=order.order_no,
            customer_id=order.customer_id,
            customer_name=order.customer.name if order.customer else f"Customer #{order.customer_id}",
            order_date=order.order_date,
            payment_terms=order.payment_terms,
            status=order.status,
            grand_total=order.grand_total,
            invoice_id=order.invoice_id,
        )
        for order in orders
    ]


@router.post("", response_model=schemas.SalesOrderResponse, status_code=status.HTTP_201_CREATED)
def create_sales_order_endpoint(payload: schemas.SalesOrderCreate, db: Session = Depends(get_db)):
    try:
        order = create_sales_order(db, payload.model_dump())
    except (ValueError, LookupError) as exc:
        raise to_http_exception(exc)
    db.commit()
    db.refresh(order)
    return order


@router.get("/{order_id}", response_model=schemas.SalesOrderResponse)
def get_sales_order_endpoint(order_id: int, db: Session = Depends(get_db)):
    try:
        return get_sales_order(db, order_id)
    except LookupError as exc:
        raise to_http_exception(exc)


@router.put("/{order_id}", response_model=schemas.SalesOrderResponse)
def update_sales_order_endpoint(order_id: int, payload: schemas.SalesOrderUpdate, db: Session = Depends(get_db)):
    try:
        order = get_sales_order(db, order_id)
        update_sales_order(db, order, payload.model_dump(exclude_unset=True))
    except (ValueError, LookupError) as exc:
        raise to_http_exception(exc)
    db.commit()
    db.refresh(order)
    return order


def _run_action(db: Session, order_id: int, action, *args) -> SalesOrder:
    try:
        order = get_sales_order(db, order_id)
        action(db, order, *args)
    except (ValueError, LookupError) as exc:
        raise to_http_exception(exc)
    db.commit()
    db.refresh(order)
    return order


@router.post("/{order_id}/confirm", response_model=schemas.SalesOrderResponse)
def confirm_sales_order_endpoint(order_id: int, db: Session = Depends(get_db)):
    return _run_action(db, order_id, confirm_sales_order)


@router.post("/{order_id}/cancel", response_model=schemas.SalesOrderResponse)
def cancel_sales_order_endpoint(
    order_id: int,
    payload: Optional[schemas.SalesOrderCancel] = None,
    db: Session = Depends(get_db),
):
    return _run_action(db, order_id, cancel_sales_order, payload.reason if payload else None)


@router.post("/{order_id}/create-invoice", response_model=SalesInvoiceResponse, status_code=status.HTTP_201_CREATED)
def create_invoice_endpoint(
    order_id: int,
    payload: Optional[schemas.SalesOrderInvoiceCreate] = None,
    db: Session = Depends(get_db),
):
    try:
        order = get_sales_order(db, order_id)
        invoice = create_invoice_from_order(db, order, payload.invoice_date if payload else None)
    except (ValueError, LookupError) as exc:
        raise to_http_exception(exc)
    db.commit()
    db.refresh(invoice)
    return invoice
