"""Explicit outcome types for Jira calls that can fail."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """A successful call carrying its value."""

    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Failed:
    """A failed call with a human readable reason."""

    reason: str
    status_code: Optional[int] = None

    @property
    def ok(self) -> bool:
        return False

    def describe(self) -> str:
        if self.status_code:
            return f"HTTP {self.status_code}: {self.reason}"
        return self.reason


Result = Union[Ok[T], Failed]


__all__ = ["Failed", "Ok", "Result"]
