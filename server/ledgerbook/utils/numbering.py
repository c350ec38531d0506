from sqlalchemy import func
from sqlalchemy.orm import Session


def next_document_number(db: Session, column, prefix: str, year: int, width: int = 4) -> str:
    """Sequential per-year numbers such as INV-2026-0001."""
    series = f"{prefix}-{year}-"
    count = db.query(func.count(column)).filter(column.like(f"{series}%")).scalar() or 0
    return f"{series}{count + 1:0{width}d}"
