from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ledgerbook.db import get_db
from ledgerbook.models import Payment
from ledgerbook.payments import schemas
from ledgerbook.payments.service import (
    cancel_payment,
    create_payment,
    get_payment,
    list_payments,
    post_payment,
    update_payment,
)
from ledgerbook.routers.common import to_http_exception

router = APIRouter(prefix="/api/payments", tags=["payments"])


@router.get("", response_model=List[schemas.PaymentResponse])
def get_payments(
    payment_type: Optional[str] = None,
    status: Optional[str] = None,
    customer_id: Optional[int] = None,
    vendor_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
):
    return list_payments(db, payment_type, status, customer_id, vendor_id, start_date, end_date)


@router.post("", response_model=schemas.PaymentResponse, status_code=status.HTTP_201_CREATED)
def create_payment_endpoint(payload: schemas.PaymentCreate, db: Session = Depends(get_db)):
    try:
        payment = create_payment(db, payload.model_dump())
    except (ValueError, LookupError) as exc:
        raise to_http_exception(exc)
    db.commit()
    db.refresh(payment)
    return payment


@router.get("/{payment_id}", response_model=schemas.PaymentResponse)
def get_payment_endpoint(payment_id: int, db: Session = Depends(get_db)):
    try:
        return get_payment(db, payment_id)
    except LookupError as exc:
        raise to_http_exception(exc)


@router.put("/{payment_id}", response_model=schemas.PaymentResponse)
def update_payment_endpoint(payment_id: int, payload: schemas.PaymentUpdate, db: Session = Depends(get_db)):
    try:
        payment = get_payment(db, payment_id)
        update_payment(db, payment, payload.model_dump(exclude_unset=True))
    except (ValueError, LookupError) as exc:
        raise to_http_exception(exc)
    db.commit()
    db.refresh(payment)
    return payment


def _run_action(db: Session, payment_id: int, action, *args) -> Payment:
    try:
        payment = get_payment(db, payment_id)
        action(db, payment, *args)
    except (ValueError, LookupError) as exc:
        raise to_http_exception(exc)
    db.commit()
    db.refresh(payment)
    return payment


@router.post("/{payment_id}/post", response_model=schemas.PaymentResponse)
def post_payment_endpoint(payment_id: int, db: Session = Depends(get_db)):
    return _run_action(db, payment_id, post_payment)


@router.post("/{payment_id}/cancel", response_model=schemas.PaymentResponse)
def cancel_payment_endpoint(
    payment_id: int,
    payload: Optional[schemas.PaymentCancel] = None,
    db: Session = Depends(get_db),
):
    return _run_action(db, payment_id, cancel_payment, payload.reason if payload else None)
