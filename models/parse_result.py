"""Explicit outcome wrapper for parsing that may degrade instead of failing."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ParseStatus(str, Enum):
    """How a value was obtained from its raw input."""

    PARSED = "parsed"
    RECOVERED = "recovered"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    """A parsed value together with how trustworthy it is.

    ``RECOVERED`` means part of the input was usable and the rest was
    defaulted; ``FALLBACK`` means the value is a placeholder.
    """

    value: T
    status: ParseStatus = ParseStatus.PARSED
    reason: Optional[str] = None

    @property
    def is_degraded(self) -> bool:
        return self.status is not ParseStatus.PARSED

    @classmethod
    def parsed(cls, value: T) -> "ParseResult[T]":
        return cls(value=value, status=ParseStatus.PARSED)

    @classmethod
    def recovered(cls, value: T, reason: str) -> "ParseResult[T]":
        return cls(value=value, status=ParseStatus.RECOVERED, reason=reason)

    @classmethod
    def fallback(cls, value: T, reason: str) -> "ParseResult[T]":
        return cls(value=value, status=ParseStatus.FALLBACK, reason=reason)


__all__ = ["ParseStatus", "ParseResult"]
