"""Mapping of service outcomes onto HTTP responses."""

from typing import TypeVar

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from services.errors import Failure, FailureReason, ValidationError

T = TypeVar("T")

_STATUS_BY_REASON = {
    FailureReason.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    FailureReason.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    FailureReason.CONFLICT: status.HTTP_409_CONFLICT,
}


def unwrap(outcome: T | Failure) -> T:
    """Return the value, or raise the HTTPException matching a Failure."""
    if isinstance(outcome, Failure):
        raise HTTPException(status_code=_STATUS_BY_REASON[outcome.reason], detail=outcome.message)
    return outcome


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, validation_error_handler)  # type: ignore[arg-type]
