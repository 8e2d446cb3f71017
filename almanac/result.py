"""Result type returned by controller operations."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar, Union

from almanac.errors import AlmanacError, NotFoundError, ValidationError

T = TypeVar("T")


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    TRANSIENT = "transient"


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    error: AlmanacError

    @property
    def ok(self) -> bool:
        return False

    @property
    def message(self) -> str:
        return str(self.error)

    @classmethod
    def from_exception(cls, error: AlmanacError) -> "Err":
        if isinstance(error, ValidationError):
            kind = ErrorKind.VALIDATION
        elif isinstance(error, NotFoundError):
            kind = ErrorKind.NOT_FOUND
        else:
            kind = ErrorKind.TRANSIENT
        return cls(kind=kind, error=error)


Result = Union[Ok[Any], Err]
