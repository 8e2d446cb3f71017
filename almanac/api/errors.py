"""Translate engine results and errors into HTTP responses."""

from typing import Any, Optional

from fastapi import HTTPException

from almanac.errors import AlmanacError, ValidationError
from almanac.result import Err, ErrorKind, Result

STATUS_CODES = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.TRANSIENT: 503,
}


def http_error(err: Err) -> HTTPException:
    """400 for validation failures, 404 for missing records, 503 for backend failures."""
    status_code = STATUS_CODES.get(err.kind, 503)
    return HTTPException(status_code=status_code, detail={"kind": err.kind.value, "message": err.message})


def unwrap(result: Result) -> Any:
    """Return an Ok value or raise the matching HTTPException."""
    if not result.ok:
        raise http_error(result)
    return result.value


def raise_for(error: AlmanacError) -> None:
    raise http_error(Err.from_exception(error)) from error


def split_list(value: Optional[str]) -> list[str]:
    """Parse a comma-separated query parameter."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def require(value: Any, name: str) -> Any:
    if value is None or value == "":
        raise http_error(Err.from_exception(ValidationError(f"{name} is required")))
    return value
