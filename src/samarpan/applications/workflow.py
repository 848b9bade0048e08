"""Application status machine and coin arithmetic.

Pure functions only; the service layer persists the results.
"""

from __future__ import annotations

from samarpan.db.enums import ApplicationStatus
from samarpan.errors import InvalidTransitionError

S = ApplicationStatus

VALID_TRANSITIONS: dict[ApplicationStatus, list[ApplicationStatus]] = {
    S.PENDING: [S.ACCEPTED, S.REJECTED],
    S.ACCEPTED: [S.HOURS_SUBMITTED, S.REJECTED],
    # Rejected hours go back to ACCEPTED so the student can resubmit.
    S.HOURS_SUBMITTED: [S.HOURS_APPROVED, S.ACCEPTED, S.REJECTED],
    S.HOURS_APPROVED: [S.COMPLETED, S.REJECTED],
    S.COMPLETED: [],
    S.REJECTED: [],
}

TERMINAL_STATUSES = frozenset(status for status, targets in VALID_TRANSITIONS.items() if not targets)


def allowed_transitions(current: ApplicationStatus) -> list[ApplicationStatus]:
    return list(VALID_TRANSITIONS.get(current, []))


def validate_transition(current: ApplicationStatus, target: ApplicationStatus) -> None:
    """Raise InvalidTransitionError unless ``current -> target`` is allowed."""
    valid = VALID_TRANSITIONS.get(current, [])
    if target not in valid:
        raise InvalidTransitionError(current.value, target.value, [s.value for s in valid])


def calculate_coins(hours: float, coins_per_hour: int, max_coins: int) -> int:
    """Coins earned for ``hours`` of work, capped at the opportunity maximum.

    >>> calculate_coins(3, 10, 100)
    30
    >>> calculate_coins(25, 10, 100)
    100
    """
    if hours <= 0 or coins_per_hour <= 0 or max_coins <= 0:
        return 0
    return min(round(hours * coins_per_hour), max_coins)


def clamp_coins(requested: int, max_coins: int) -> int:
    """An admin-chosen award, forced into ``[0, max_coins]``."""
    return max(0, min(requested, max(max_coins, 0)))
