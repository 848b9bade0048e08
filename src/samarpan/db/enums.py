"""Closed value sets used by the schema, the API and the client."""

from __future__ import annotations

import enum


class UserRole(str, enum.Enum):
    STUDENT = "student"
    ADMIN = "admin"


class OpportunityType(str, enum.Enum):
    TEACHING = "teaching"
    DONATION = "donation"
    MENTORING = "mentoring"
    COMMUNITY_SERVICE = "community_service"


class OpportunityStatus(str, enum.Enum):
    OPEN = "open"
    CLOSED = "closed"
    FILLED = "filled"


class Duration(str, enum.Enum):
    INSTANT = "instant"
    ONE_TO_THREE_DAYS = "1-3days"
    ONE_WEEK = "1week"
    TWO_TO_FOUR_WEEKS = "2-4weeks"
    CUSTOM = "custom"


class Visibility(str, enum.Enum):
    PUBLIC = "public"
    PRIVATE = "private"


class ApplicationStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    HOURS_SUBMITTED = "hours_submitted"
    HOURS_APPROVED = "hours_approved"
    COMPLETED = "completed"
    REJECTED = "rejected"


class BadgeType(str, enum.Enum):
    MILESTONE = "milestone"
    SPECIAL = "special"


class SortKey(str, enum.Enum):
    NEWEST = "newest"
    ENDING_SOON = "ending-soon"
    MOST_APPLIED = "most-applied"


class Timeframe(str, enum.Enum):
    ALL = "all"
    MONTH = "month"
    SEMESTER = "semester"


# Shortest commitment first; used by the "ending-soon" sort.
DURATION_ORDER: dict[Duration, int] = {
    Duration.INSTANT: 0,
    Duration.ONE_TO_THREE_DAYS: 1,
    Duration.ONE_WEEK: 2,
    Duration.TWO_TO_FOUR_WEEKS: 3,
    Duration.CUSTOM: 4,
}
