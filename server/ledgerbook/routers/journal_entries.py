from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ledgerbook.accounting import schemas
from ledgerbook.accounting.posting import check_balance, validate_journal_lines
from ledgerbook.accounting.service import (
    create_journal_entry,
    delete_journal_entry,
    get_journal_entry,
    list_journal_entries,
    post_journal_entry,
    reverse_journal_entry,
    to_line_inputs,
    update_journal_entry,
    validate_journal_entry,
)
from ledgerbook.accounting.workflow import ensure_manual_entry, ensure_manual_reference
from ledgerbook.db import get_db
from ledgerbook.routers.common import to_http_exception

router = APIRouter(prefix="/api/journal-entries", tags=["journal-entries"])


@router.get("", response_model=List[schemas.JournalEntryResponse])
def get_journal_entries(
    status: Optional[str] = Query(None),
    entry_type: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    return list_journal_entries(
        db,
        status=status,
        entry_type=entry_type,
        search=search,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        offset=offset,
    )


@router.post("", response_model=schemas.JournalEntryResponse, status_code=status.HTTP_201_CREATED)
def create_journal_entry_endpoint(payload: schemas.JournalEntryCreate, db: Session = Depends(get_db)):
    data = payload.model_dump()
    try:
        ensure_manual_reference(data["reference_type"])
        entry = create_journal_entry(
            db,
            entry_date=data["entry_date"],
            entry_type=data["entry_type"],
            description=data["description"],
            reference_type=data["reference_type"],
            reference_no=data["reference_no"],
            notes=data["notes"],
            lines=data["lines"],
        )
    except (ValueError, LookupError) as exc:
        raise to_http_exception(exc)
    db.commit()
    db.refresh(entry)
    return entry


@router.post("/check-balance", response_model=schemas.BalanceCheckResponse)
def check_balance_endpoint(payload: schemas.BalanceCheckRequest):
    lines = to_line_inputs(line.model_dump() for line in payload.lines)
    result = check_balance(lines)
    return schemas.BalanceCheckResponse(
        is_balanced=result.is_balanced,
        total_debit=result.total_debit,
        total_credit=result.total_credit,
        difference=result.difference,
        line_errors=[
            schemas.JournalLineErrorResponse(line_no=error.line_no, message=error.message)
            for error in validate_journal_lines(lines)
        ],
    )


@router.get("/{entry_id}", response_model=schemas.JournalEntryResponse)
def get_journal_entry_endpoint(entry_id: int, db: Session = Depends(get_db)):
    try:
        return get_journal_entry(db, entry_id)
    except LookupError as exc:
        raise to_http_exception(exc)


@router.put("/{entry_id}", response_model=schemas.JournalEntryResponse)
def update_journal_entry_endpoint(entry_id: int, payload: schemas.JournalEntryUpdate, db: Session = Depends(get_db)):
    try:
        entry = get_journal_entry(db, entry_id)
        ensure_manual_entry(entry)
        ensure_manual_reference(payload.reference_type)
        update_journal_entry(db, entry, payload.model_dump(exclude_unset=True))
    except (ValueError, LookupError) as exc:
        raise to_http_exception(exc)
    db.commit()
    db.refresh(entry)
    return entry


@router.delete("/{entry_id}", response_model=schemas.JournalEntryResponse)
def delete_journal_entry_endpoint(entry_id: int, db: Session = Depends(get_db)):
    try:
        entry = get_journal_entry(db, entry_id)
        ensure_manual_entry(entry)
        delete_journal_entry(db, entry)
    except (ValueError, LookupError) as exc:
        raise to_http_exception(exc)
    db.commit()
    db.refresh(entry)
    return entry


@router.get("/{entry_id}/validate", response_model=schemas.JournalEntryValidationResponse)
def validate_journal_entry_endpoint(entry_id: int, db: Session = Depends(get_db)):
    try:
        entry = get_journal_entry(db, entry_id)
    except LookupError as exc:
        raise to_http_exception(exc)
    return validate_journal_entry(db, entry)


@router.post("/{entry_id}/post", response_model=schemas.JournalEntryResponse)
def post_journal_entry_endpoint(entry_id: int, db: Session = Depends(get_db)):
    try:
        entry = get_journal_entry(db, entry_id)
        post_journal_entry(db, entry)
    except (ValueError, LookupError) as exc:
        raise to_http_exception(exc)
    db.commit()
    db.refresh(entry)
    return entry


@router.post("/{entry_id}/reverse", response_model=schemas.JournalEntryResponse, status_code=status.HTTP_201_CREATED)
def reverse_journal_entry_endpoint(
    entry_id: int,
    payload: Optional[schemas.JournalEntryReverse] = None,
    db: Session = Depends(get_db),
):
    try:
        entry = get_journal_entry(db, entry_id)
        ensure_manual_entry(entry)
        reversing_entry = reverse_journal_entry(db, entry, reversal_date=payload.reversal_date if payload else None)
    except (ValueError, LookupError) as exc:
        raise to_http_exception(exc)
    db.commit()
    db.refresh(reversing_entry)
    return reversing_entry
