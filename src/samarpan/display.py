"""Display strings for enum values and leaderboard names.

Every mapping is keyed by the full enum, so adding a member without a label
fails loudly in the test-suite instead of rendering a blank badge.
"""

from __future__ import annotations

from samarpan.db.enums import ApplicationStatus, Duration, OpportunityStatus, OpportunityType

ANONYMOUS_NAME = "Anonymous"
ANONYMOUS_INITIALS = "??"

OPPORTUNITY_STATUS_COLORS: dict[OpportunityStatus, str] = {
    OpportunityStatus.OPEN: "bg-green-100 text-green-800",
    OpportunityStatus.CLOSED: "bg-red-100 text-red-800",
    OpportunityStatus.FILLED: "bg-blue-100 text-blue-800",
}

APPLICATION_STATUS_COLORS: dict[ApplicationStatus, str] = {
    ApplicationStatus.PENDING: "bg-yellow-100 text-yellow-800",
    ApplicationStatus.ACCEPTED: "bg-blue-100 text-blue-800",
    ApplicationStatus.HOURS_SUBMITTED: "bg-purple-100 text-purple-800",
    ApplicationStatus.HOURS_APPROVED: "bg-green-100 text-green-800",
    ApplicationStatus.COMPLETED: "bg-green-100 text-green-800",
    ApplicationStatus.REJECTED: "bg-red-100 text-red-800",
}

APPLICATION_STATUS_LABELS: dict[ApplicationStatus, str] = {
    ApplicationStatus.PENDING: "Pending",
    ApplicationStatus.ACCEPTED: "Accepted",
    ApplicationStatus.HOURS_SUBMITTED: "Hours Submitted",
    ApplicationStatus.HOURS_APPROVED: "Hours Approved",
    ApplicationStatus.COMPLETED: "Completed",
    ApplicationStatus.REJECTED: "Rejected",
}

OPPORTUNITY_TYPE_LABELS: dict[OpportunityType, str] = {
    OpportunityType.TEACHING: "Teaching",
    OpportunityType.DONATION: "Donation",
    OpportunityType.MENTORING: "Mentoring",
    OpportunityType.COMMUNITY_SERVICE: "Community Service",
}

OPPORTUNITY_TYPE_COLORS: dict[OpportunityType, str] = {
    OpportunityType.TEACHING: "bg-chart-1/10 text-chart-1",
    OpportunityType.DONATION: "bg-chart-4/10 text-chart-4",
    OpportunityType.MENTORING: "bg-chart-2/10 text-chart-2",
    OpportunityType.COMMUNITY_SERVICE: "bg-chart-3/10 text-chart-3",
}

DURATION_LABELS: dict[Duration, str] = {
    Duration.INSTANT: "Instant",
    Duration.ONE_TO_THREE_DAYS: "1-3 days",
    Duration.ONE_WEEK: "1 week",
    Duration.TWO_TO_FOUR_WEEKS: "2-4 weeks",
    Duration.CUSTOM: "Custom",
}

# Podium colours for the top three leaderboard ranks.
RANK_COLORS: dict[int, str] = {
    1: "bg-gradient-to-br from-yellow-400 to-yellow-600",
    2: "bg-gradient-to-br from-gray-300 to-gray-500",
    3: "bg-gradient-to-br from-amber-600 to-amber-800",
}
DEFAULT_RANK_COLOR = "bg-primary"


def opportunity_status_color(status: OpportunityStatus | str) -> str:
    return OPPORTUNITY_STATUS_COLORS[OpportunityStatus(status)]


def application_status_color(status: ApplicationStatus | str) -> str:
    return APPLICATION_STATUS_COLORS[ApplicationStatus(status)]


def application_status_label(status: ApplicationStatus | str) -> str:
    return APPLICATION_STATUS_LABELS[ApplicationStatus(status)]


def opportunity_type_label(type_: OpportunityType | str) -> str:
    return OPPORTUNITY_TYPE_LABELS[OpportunityType(type_)]


def duration_label(duration: Duration | str, custom_duration: str | None = None) -> str:
    """Human label for a duration; a non-empty ``custom_duration`` always wins."""
    if custom_duration:
        return custom_duration
    return DURATION_LABELS[Duration(duration)]


def rank_color(rank: int) -> str:
    return RANK_COLORS.get(rank, DEFAULT_RANK_COLOR)


def _is_masked(owner_id: str, anonymize: bool, viewer_id: str | None) -> bool:
    return anonymize and owner_id != viewer_id


def display_name(
    owner_id: str,
    first_name: str | None,
    last_name: str | None,
    anonymize: bool,
    viewer_id: str | None,
) -> str:
    """Name shown on the leaderboard to ``viewer_id``.

    An anonymized user is "Anonymous" to everyone except themselves.
    """
    if _is_masked(owner_id, anonymize, viewer_id):
        return ANONYMOUS_NAME
    return f"{first_name or ''} {last_name or ''}".strip()


def display_initials(
    owner_id: str,
    first_name: str | None,
    last_name: str | None,
    anonymize: bool,
    viewer_id: str | None,
) -> str:
    if _is_masked(owner_id, anonymize, viewer_id):
        return ANONYMOUS_INITIALS
    return f"{(first_name or '')[:1]}{(last_name or '')[:1]}".upper()
