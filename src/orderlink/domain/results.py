"""Result type for best-effort collaborator calls.

Lookups and outbound sends made while handling an inbound message may fail
without failing the message. Functions that degrade instead of raising return
BestEffort so callers can see (and log) the degradation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class BestEffort(Generic[T]):
    """Outcome of an operation that must not abort its caller.

    Attributes:
        value: The result, or the fallback when degraded.
        reason: Short machine-readable reason when degraded, else None.
    """

    value: T
    reason: str | None = None

    @property
    def degraded(self) -> bool:
        return self.reason is not None

    @classmethod
    def ok(cls, value: T) -> BestEffort[T]:
        return cls(value=value)

    @classmethod
    def degrade(cls, reason: str, fallback: T) -> BestEffort[T]:
        return cls(value=fallback, reason=reason)
