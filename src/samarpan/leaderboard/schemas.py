"""Leaderboard response schemas."""

from __future__ import annotations

from samarpan.camel import CamelModel


class LeaderboardEntry(CamelModel):
    rank: int
    id: str
    display_name: str
    initials: str
    first_name: str | None = None
    last_name: str | None = None
    profile_image_url: str | None = None
    program: str | None = None
    coins: int
    completed_applications: int
    total_applications: int
    anonymize_leaderboard: bool
    is_current_user: bool = False
