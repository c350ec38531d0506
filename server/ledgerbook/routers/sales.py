from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ledgerbook.db import get_db
from ledgerbook.models import Customer, Item
from ledgerbook.routers.common import to_http_exception
from ledgerbook.sales import schemas
from ledgerbook.sales.service import (
    cancel_invoice,
    create_invoice,
    get_invoice,
    list_customers,
    list_invoices,
    list_items,
    post_invoice,
    preview_line_items,
    record_invoice_payment,
    update_invoice,
)

router = APIRouter(prefix="/api", tags=["sales"])


@router.get("/customers", response_model=List[schemas.CustomerResponse])
def get_customers(search: Optional[str] = None, db: Session = Depends(get_db)):
    return list_customers(db, search)


@router.post("/customers", response_model=schemas.CustomerResponse, status_code=status.HTTP_201_CREATED)
def create_customer(payload: schemas.CustomerCreate, db: Session = Depends(get_db)):
    customer = Customer(**payload.model_dump())
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return customer


@router.get("/customers/{customer_id}", response_model=schemas.CustomerResponse)
def get_customer(customer_id: int, db: Session = Depends(get_db)):
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found.")
    return customer


@router.put("/customers/{customer_id}", response_model=schemas.CustomerResponse)
def update_customer(customer_id: int, payload: schemas.CustomerUpdate, db: Session = Depends(get_db)):
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found.")
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(customer, key, value)
    db.commit()
    db.refresh(customer)
    return customer


@router.delete("/customers/{customer_id}", response_model=schemas.CustomerResponse)
def archive_customer(customer_id: int, db: Session = Depends(get_db)):
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found.")
    customer.is_active = False
    db.commit()
    db.refresh(customer)
    return customer


@router.get("/items", response_model=List[schemas.ItemResponse])
def get_items(search: Optional[str] = None, db: Session = Depends(get_db)):
    return list_items(db, search)


@router.post("/items", response_model=schemas.ItemResponse, status_code=status.HTTP_201_CREATED)
def create_item(payload: schemas.ItemCreate, db: Session = Depends(get_db)):
    item = Item(**payload.model_dump())
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


@router.get("/items/{item_id}", response_model=schemas.ItemResponse)
def get_item(item_id: int, db: Session = Depends(get_db)):
    item = db.query(Item).filter(Item.id == item_id).first()
    if not item:
        raise HTTPException(status_code=404, detail="Item not found.")
    return item


@router.put("/items/{item_id}", response_model=schemas.ItemResponse)
def update_item(item_id: int, payload: schemas.ItemUpdate, db: Session = Depends(get_db)):
    item = db.query(Item).filter(Item.id == item_id).first()
    if not item:
        raise HTTPException(status_code=404, detail="Item not found.")
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(item, key, value)
    db.commit()
    db.refresh(item)
    return item


@router.delete("/items/{item_id}", response_model=schemas.ItemResponse)
def archive_item(item_id: int, db: Session = Depends(get_db)):
    item = db.query(Item).filter(Item.id == item_id).first()
    if not item:
        raise HTTPException(status_code=404, detail="Item not found.")
    item.is_active = False
    db.commit()
    db.refresh(item)
    return item


@router.get("/sales-invoices", response_model=List[schemas.SalesInvoiceListResponse])
def get_sales_invoices(
    status: Optional[str] = None,
    customer_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
):
    invoices = list_invoices(db, status, customer_id, start_date, end_date)
    return [
        schemas.SalesInvoiceListResponse(
            id=invoice.id,
            invoice_no=invoice.invoice_no,
            customer_id=invoice.customer_id,
            customer_name=invoice.customer.name if invoice.customer else f"Customer #{invoice.customer_id}",
            invoice_date=invoice.invoice_date,
            due_date=invoice.due_date,
            status=invoice.status,
            grand_total=invoice.grand_total,
            amount_due=invoice.amount_due,
        )
        for invoice in invoices
    ]


@router.post("/sales-invoices", response_model=schemas.SalesInvoiceResponse, status_code=status.HTTP_201_CREATED)
def create_sales_invoice(payload: schemas.SalesInvoiceCreate, db: Session = Depends(get_db)):
    try:
        invoice = create_invoice(db, payload.model_dump())
    except (ValueError, LookupError) as exc:
        raise to_http_exception(exc)
    db.commit()
    db.refresh(invoice)
    return invoice


@router.get("/sales-invoices/{invoice_id}", response_model=schemas.SalesInvoiceResponse)
def get_sales_invoice(invoice_id: int, db: Session = Depends(get_db)):
    try:
        return get_invoice(db, invoice_id)
    except LookupError as exc:
        raise to_http_exception(exc)


@router.put("/sales-invoices/{invoice_id}", response_model=schemas.SalesInvoiceResponse)
def update_sales_invoice(invoice_id: int, payload: schemas.SalesInvoiceUpdate, db: Session = Depends(get_db)):
    try:
        invoice = get_invoice(db, invoice_id)
        update_invoice(db, invoice, payload.model_dump(exclude_unset=True))
    except (ValueError, LookupError) as exc:
        raise to_http_exception(exc)
    db.commit()
    db.refresh(invoice)
    return invoice


@router.post("/sales-invoices/{invoice_id}/post", response_model=schemas.SalesInvoiceResponse)
def post_sales_invoice(invoice_id: int, db: Session = Depends(get_db)):
    try:
        invoice = get_invoice(db, invoice_id)
        post_invoice(db, invoice)
    except (ValueError, LookupError) as exc:
        raise to_http_exception(exc)
    db.commit()
    db.refresh(invoice)
    return invoice


@router.post("/sales-invoices/{invoice_id}/payments", response_model=schemas.SalesInvoiceResponse)
def record_sales_invoice_payment(invoice_id: int, payload: schemas.InvoicePaymentCreate, db: Session = Depends(get_db)):
    try:
        invoice = get_invoice(db, invoice_id)
        record_invoice_payment(
            db,
            invoice,
            payload.amount,
            payment_date=payload.payment_date,
            reference=payload.reference,
        )
    except (ValueError, LookupError) as exc:
        raise to_http_exception(exc)
    db.commit()
    db.refresh(invoice)
    return invoice


@router.post("/sales-invoices/{invoice_id}/cancel", response_model=schemas.SalesInvoiceResponse)
def cancel_sales_invoice(
    invoice_id: int,
    payload: Optional[schemas.InvoiceCancel] = None,
    db: Session = Depends(get_db),
):
    try:
        invoice = get_invoice(db, invoice_id)
        cancel_invoice(db, invoice, payload.reason if payload else None)
    except (ValueError, LookupError) as exc:
        raise to_http_exception(exc)
    db.commit()
    db.refresh(invoice)
    return invoice


@router.post("/calculations/line-items", response_model=schemas.LineItemPreviewResponse)
def preview_line_item_totals(payload: schemas.LineItemPreviewRequest):
    return preview_line_items([line.model_dump() for line in payload.lines])
