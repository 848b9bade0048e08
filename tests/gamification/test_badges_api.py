"""Badge catalogue, admin creation and earned badges."""

import pytest
from httpx import AsyncClient

from samarpan.gamification.seed import BADGE_SEED_DATA, seed_badges

pytestmark = pytest.mark.asyncio


async def test_default_badges_seeded(client: AsyncClient) -> None:
    response = await client.get("/api/badges")
    assert response.status_code == 200
    badges = response.json()
    assert [b["name"] for b in badges] == ["First Steps", "Helper", "Changemaker", "Champion", "Legend"]
    assert [b["coinsRequired"] for b in badges] == [10, 50, 100, 250, 500]
    assert all(b["type"] == "milestone" for b in badges)


async def test_seed_is_idempotent(db_session) -> None:
    assert await seed_badges(db_session) == 0


async def test_seed_data_thresholds_ascend() -> None:
    thresholds = [b["coins_required"] for b in BADGE_SEED_DATA]
    assert thresholds == sorted(thresholds)


async def test_admin_creates_badge(admin, client: AsyncClient) -> None:
    response = await admin.client.post(
        "/api/badges",
        json={"name": "Early Bird", "description": "Volunteered before 8am", "coinsRequired": 5, "type": "special"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Early Bird"
    assert data["type"] == "special"

    names = [b["name"] for b in (await client.get("/api/badges")).json()]
    assert names[0] == "Early Bird"


async def test_duplicate_badge_name(admin) -> None:
    response = await admin.client.post("/api/badges", json={"name": "Helper", "coinsRequired": 75})
    assert response.status_code == 409


async def test_badge_creation_requires_admin(student) -> None:
    response = await student.client.post("/api/badges", json={"name": "Self-awarded", "coinsRequired": 0})
    assert response.status_code == 403


async def test_badge_validation(admin) -> None:
    response = await admin.client.post("/api/badges", json={"name": "Negative", "coinsRequired": -1})
    assert response.status_code == 400


async def test_no_earned_badges(student, client: AsyncClient) -> None:
    response = await client.get(f"/api/badges/user/{student.id}")
    assert response.status_code == 200
    assert response.json() == []


async def test_earned_badges_have_timestamp(admin, student, create_opportunity) -> None:
    opportunity = await create_opportunity(coinsPerHour=10, maxCoins=100)
    application = (
        await student.client.post(
            "/api/applications", json={"opportunityId": opportunity["id"], "commitmentAcknowledged": True}
        )
    ).json()
    await admin.client.put(f"/api/applications/{application['id']}/status", json={"status": "accepted"})
    await student.client.patch(f"/api/applications/{application['id']}/submit-hours", json={"hours": 1})
    await admin.client.post(f"/api/applications/{application['id']}/approve-hours", json={})
    await admin.client.put(f"/api/applications/{application['id']}/status", json={"status": "completed"})

    earned = (await student.client.get(f"/api/badges/user/{student.id}")).json()
    assert len(earned) == 1
    assert earned[0]["name"] == "First Steps"
    assert earned[0]["earnedAt"]
