"""Admin analytics aggregates."""

from datetime import datetime, timezone

import pytest

pytestmark = pytest.mark.asyncio


async def test_empty_platform(admin) -> None:
    response = await admin.client.get("/api/analytics")
    assert response.status_code == 200
    assert response.json() == {
        "totalOpportunities": 0,
        "totalApplications": 0,
        "averageApplyRate": 0.0,
        "completionRate": 0.0,
        "applicationsOverTime": [],
        "applicationsByType": [],
    }


async def test_aggregates(admin, sign_in, create_opportunity) -> None:
    teaching = await create_opportunity(title="Tutoring", type="teaching")
    donation = await create_opportunity(title="Book Drive", type="donation")

    students = [await sign_in(f"student{i}@iimb.ac.in") for i in range(3)]
    application_ids = []
    for account in students:
        response = await account.client.post(
            "/api/applications", json={"opportunityId": teaching["id"], "commitmentAcknowledged": True}
        )
        application_ids.append(response.json()["id"])
    await students[0].client.post(
        "/api/applications", json={"opportunityId": donation["id"], "commitmentAcknowledged": True}
    )

    completed = application_ids[0]
    await admin.client.put(f"/api/applications/{completed}/status", json={"status": "accepted"})
    await students[0].client.patch(f"/api/applications/{completed}/submit-hours", json={"hours": 2})
    await admin.client.post(f"/api/applications/{completed}/approve-hours", json={})
    await admin.client.put(f"/api/applications/{completed}/status", json={"status": "completed"})

    data = (await admin.client.get("/api/analytics")).json()
    assert data["totalOpportunities"] == 2
    assert data["totalApplications"] == 4
    assert data["averageApplyRate"] == 2.0
    assert data["completionRate"] == 25.0
    assert data["applicationsByType"] == [{"type": "teaching", "count": 3}, {"type": "donation", "count": 1}]

    today = datetime.now(timezone.utc).date().isoformat()
    assert data["applicationsOverTime"] == [{"date": today, "count": 4}]


async def test_requires_admin(student) -> None:
    response = await student.client.get("/api/analytics")
    assert response.status_code == 403


async def test_requires_login(client) -> None:
    response = await client.get("/api/analytics")
    assert response.status_code == 401
