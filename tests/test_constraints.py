"""Tests for stay interval rules and retry policy validation."""

from __future__ import annotations

from datetime import date

import pytest

from backend.domain.constraints import (
    RetryPolicy,
    backoff_delay,
    count_nights,
    intervals_overlap,
    validate_retry_policy,
    validate_stay,
)


def d(value: str) -> date:
    return date.fromisoformat(value)


# --- intervals_overlap ---

@pytest.mark.parametrize(
    ("first", "second", "expected"),
    [
        (("2024-01-01", "2024-01-05"), ("2024-01-03", "2024-01-07"), True),
        (("2024-01-01", "2024-01-05"), ("2024-01-05", "2024-01-07"), False),
        (("2024-01-05", "2024-01-07"), ("2024-01-01", "2024-01-05"), False),
        (("2024-01-01", "2024-01-10"), ("2024-01-03", "2024-01-04"), True),
        (("2024-01-03", "2024-01-04"), ("2024-01-01", "2024-01-10"), True),
        (("2024-01-01", "2024-01-02"), ("2024-01-01", "2024-01-02"), True),
        (("2024-01-01", "2024-01-02"), ("2024-01-03", "2024-01-04"), False),
        (("2024-01-01", "2024-01-03"), ("2024-01-02", "2024-01-03"), True),
    ],
)
def test_intervals_overlap_matches_half_open_rule(first, second, expected) -> None:
    assert intervals_overlap(d(first[0]), d(first[1]), d(second[0]), d(second[1])) is expected


def test_back_to_back_stays_do_not_overlap() -> None:
    """Checkout day equal to the next check-in day is not a conflict."""
    assert not intervals_overlap(d("2024-03-01"), d("2024-03-04"), d("2024-03-04"), d("2024-03-06"))


def test_overlap_is_symmetric() -> None:
    days = [d(f"2024-05-0{day}") for day in range(1, 8)]
    for s1 in days:
        for e1 in days:
            if e1 <= s1:
                continue
            for s2 in days:
                for e2 in days:
                    if e2 <= s2:
                        continue
                    assert intervals_overlap(s1, e1, s2, e2) == intervals_overlap(s2, e2, s1, e1)


# --- validate_stay / count_nights ---

def test_validate_stay_returns_period() -> None:
    stay = validate_stay(d("2024-03-01"), d("2024-03-04"))
    assert stay.start == d("2024-03-01")
    assert stay.end == d("2024-03-04")


def test_validate_stay_rejects_reversed_range() -> None:
    with pytest.raises(ValueError):
        validate_stay(d("2024-03-05"), d("2024-03-01"))


def test_validate_stay_rejects_empty_range() -> None:
    with pytest.raises(ValueError):
        validate_stay(d("2024-03-05"), d("2024-03-05"))


def test_count_nights_across_month_and_leap_day() -> None:
    assert count_nights(d("2024-03-01"), d("2024-03-04")) == 3
    assert count_nights(d("2024-02-28"), d("2024-03-01")) == 2
    assert count_nights(d("2023-12-31"), d("2024-01-01")) == 1


# --- RetryPolicy ---

def test_valid_retry_policy_passes() -> None:
    validate_retry_policy(RetryPolicy(max_attempts=3, backoff_seconds=0.05))


def test_zero_backoff_passes() -> None:
    validate_retry_policy(RetryPolicy(max_attempts=1, backoff_seconds=0.0))


def test_zero_attempts_raises() -> None:
    with pytest.raises(ValueError):
        validate_retry_policy(RetryPolicy(max_attempts=0, backoff_seconds=0.05))


def test_negative_backoff_raises() -> None:
    with pytest.raises(ValueError):
        validate_retry_policy(RetryPolicy(max_attempts=3, backoff_seconds=-0.1))


def test_backoff_grows_linearly() -> None:
    policy = RetryPolicy(max_attempts=3, backoff_seconds=0.05)
    assert backoff_delay(policy, 1) == pytest.approx(0.05)
    assert backoff_delay(policy, 2) == pytest.approx(0.10)
    assert backoff_delay(policy, 3) == pytest.approx(0.15)


def test_backoff_rejects_attempt_zero() -> None:
    with pytest.raises(ValueError):
        backoff_delay(RetryPolicy(max_attempts=3, backoff_seconds=0.05), 0)
