"""Domain-level rules for stay intervals and the reservation retry policy."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from backend.domain.models import StayPeriod


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int
    backoff_seconds: float


def validate_retry_policy(policy: RetryPolicy) -> None:
    if policy.max_attempts <= 0:
        raise ValueError("max_attempts must be > 0")
    if policy.backoff_seconds < 0.0:
        raise ValueError("backoff_seconds must be >= 0")


def backoff_delay(policy: RetryPolicy, attempt: int) -> float:
    """Linear backoff: the n-th failed attempt waits n * backoff_seconds."""
    if attempt <= 0:
        raise ValueError("attempt numbers start at 1")
    return policy.backoff_seconds * attempt


def intervals_overlap(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    """Half-open overlap test; back-to-back stays (end_a == start_b) do not overlap."""
    return start_a < end_b and start_b < end_a


def validate_stay(start: date, end: date) -> StayPeriod:
    if end <= start:
        raise ValueError("end date must be after start date")
    return StayPeriod(start=start, end=end)


def count_nights(start: date, end: date) -> int:
    """Number of day boundaries between two calendar days."""
    return (end - start).days
