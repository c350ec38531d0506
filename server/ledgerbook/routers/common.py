from fastapi import HTTPException, status

from ledgerbook.errors import InvalidJournalLineError, NotFoundError, PolicyError, UnbalancedEntryError, ValidationError


def to_http_exception(exc: Exception) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, PolicyError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, ValidationError):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": "Validation failed.", "errors": exc.errors},
        )
    if isinstance(exc, InvalidJournalLineError):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "message": "One or more journal lines are invalid.",
                "line_errors": [{"line_no": error.line_no, "message": error.message} for error in exc.line_errors],
            },
        )
    if isinstance(exc, UnbalancedEntryError):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "message": str(exc),
                "total_debit": str(exc.total_debit),
                "total_credit": str(exc.total_credit),
                "difference": str(exc.difference),
            },
        )
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
