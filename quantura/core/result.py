from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from quantura.core.errors import ErrorCode

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Uniform return value of every repository operation and action.

    Exactly one of `data` and `error` is populated; constructing any other
    combination raises ValueError.
    """

    data: Optional[T] = None
    error: Optional[ErrorCode] = None

    def __post_init__(self) -> None:
        if (self.data is None) == (self.error is None):
            raise ValueError("Result must carry exactly one of data or error")

    # PUBLIC_INTERFACE
    @classmethod
    def ok(cls, data: T) -> "Result[T]":
        """Build a successful result."""
        return cls(data=data, error=None)

    # PUBLIC_INTERFACE
    @classmethod
    def fail(cls, error: ErrorCode) -> "Result[T]":
        """Build a failed result."""
        return cls(data=None, error=error)

    @property
    def is_ok(self) -> bool:
        return self.error is None

    def as_dict(self) -> dict:
        return {"data": self.data, "error": self.error.value if self.error else None}
