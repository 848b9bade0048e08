"""Opportunity search, filters, sorting and paging."""

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


def _titles(response) -> list[str]:
    return [opp["title"] for opp in response.json()["opportunities"]]


async def test_empty_listing(client: AsyncClient) -> None:
    response = await client.get("/api/opportunities")
    assert response.status_code == 200
    assert response.json() == {"opportunities": [], "total": 0, "limit": 12, "offset": 0}


async def test_listing_shape(client: AsyncClient, create_opportunity, admin) -> None:
    created = await create_opportunity()

    response = await client.get("/api/opportunities")
    data = response.json()
    assert data["total"] == 1
    opp = data["opportunities"][0]
    assert opp["id"] == created["id"]
    assert opp["shortDescription"] == "Teach arithmetic to middle-school students"
    assert opp["skills"] == ["Teaching", "Mathematics"]
    assert opp["status"] == "open"
    assert opp["createdBy"] == admin.id
    assert opp["creator"]["id"] == admin.id
    assert opp["_count"] == {"applications": 0}


async def test_newest_first(client: AsyncClient, create_opportunity) -> None:
    await create_opportunity(title="First")
    await create_opportunity(title="Second")
    await create_opportunity(title="Third")

    response = await client.get("/api/opportunities")
    assert _titles(response) == ["Third", "Second", "First"]


async def test_default_lists_only_open(client: AsyncClient, create_opportunity, admin) -> None:
    await create_opportunity(title="Open one")
    closed = await create_opportunity(title="Closed one")
    await admin.client.patch(f"/api/opportunities/{closed['id']}/close")

    assert _titles(await client.get("/api/opportunities")) == ["Open one"]
    assert _titles(await client.get("/api/opportunities", params={"status": "closed"})) == ["Closed one"]

    response = await client.get("/api/opportunities", params={"status": "open,closed"})
    assert sorted(_titles(response)) == ["Closed one", "Open one"]


async def test_search_title_and_short_description(client: AsyncClient, create_opportunity) -> None:
    await create_opportunity(title="Beach Cleanup", shortDescription="Collect plastic on the shore")
    await create_opportunity(title="Book Drive", shortDescription="Donate books to rural schools")

    assert _titles(await client.get("/api/opportunities", params={"search": "beach"})) == ["Beach Cleanup"]
    assert _titles(await client.get("/api/opportunities", params={"search": "RURAL"})) == ["Book Drive"]
    assert _titles(await client.get("/api/opportunities", params={"search": "nothing-matches"})) == []


async def test_search_wildcards_match_literally(client: AsyncClient, create_opportunity) -> None:
    await create_opportunity(title="100% Attendance Drive", shortDescription="Help every child attend school")
    await create_opportunity(title="Beach Cleanup", shortDescription="Collect plastic on the shore")

    assert _titles(await client.get("/api/opportunities", params={"search": "100%"})) == ["100% Attendance Drive"]
    assert _titles(await client.get("/api/opportunities", params={"search": "%"})) == ["100% Attendance Drive"]
    assert _titles(await client.get("/api/opportunities", params={"search": "_"})) == []


async def test_type_filter_any_of(client: AsyncClient, create_opportunity) -> None:
    await create_opportunity(title="Tutoring", type="teaching")
    await create_opportunity(title="Book Drive", type="donation")
    await create_opportunity(title="Career Talk", type="mentoring")

    response = await client.get("/api/opportunities", params={"type[]": ["teaching", "mentoring"]})
    assert sorted(_titles(response)) == ["Career Talk", "Tutoring"]

    response = await client.get("/api/opportunities", params={"type": "donation"})
    assert _titles(response) == ["Book Drive"]


async def test_duration_filter(client: AsyncClient, create_opportunity) -> None:
    await create_opportunity(title="Quick", duration="instant")
    await create_opportunity(title="Long", duration="2-4weeks")

    response = await client.get("/api/opportunities", params={"duration[]": "instant"})
    assert _titles(response) == ["Quick"]


async def test_skills_filter_matches_any(client: AsyncClient, create_opportunity) -> None:
    await create_opportunity(title="Tutoring", skills=["Teaching"])
    await create_opportunity(title="Kitchen", skills=["Cooking", "Logistics"])
    await create_opportunity(title="Admin", skills=[])

    response = await client.get("/api/opportunities", params={"skills[]": ["Cooking", "Teaching"]})
    assert sorted(_titles(response)) == ["Kitchen", "Tutoring"]


async def test_filters_combine(client: AsyncClient, create_opportunity) -> None:
    await create_opportunity(title="Math Tutoring", type="teaching", duration="1week")
    await create_opportunity(title="Math Camp", type="teaching", duration="2-4weeks")
    await create_opportunity(title="Math Books", type="donation", duration="1week")

    response = await client.get(
        "/api/opportunities", params={"search": "math", "type": "teaching", "duration": "1week"}
    )
    assert _titles(response) == ["Math Tutoring"]


async def test_invalid_filter_value(client: AsyncClient) -> None:
    response = await client.get("/api/opportunities", params={"type": "fundraising"})
    assert response.status_code == 400
    assert response.json()["message"].startswith("Invalid type filter")


async def test_sort_ending_soon(client: AsyncClient, create_opportunity) -> None:
    await create_opportunity(title="Month", duration="2-4weeks")
    await create_opportunity(title="Custom", duration="custom", customDuration="Every Sunday")
    await create_opportunity(title="Now", duration="instant")
    await create_opportunity(title="Week", duration="1week")
    await create_opportunity(title="Days", duration="1-3days")

    response = await client.get("/api/opportunities", params={"sort": "ending-soon"})
    assert _titles(response) == ["Now", "Days", "Week", "Month", "Custom"]


async def test_sort_most_applied(client: AsyncClient, create_opportunity, sign_in) -> None:
    quiet = await create_opportunity(title="Quiet")
    busy = await create_opportunity(title="Busy")
    await create_opportunity(title="Empty")

    for i in range(2):
        account = await sign_in(f"student{i}@iimb.ac.in")
        await account.client.post(
            "/api/applications", json={"opportunityId": busy["id"], "commitmentAcknowledged": True}
        )
    account = await sign_in("student9@iimb.ac.in")
    await account.client.post(
        "/api/applications", json={"opportunityId": quiet["id"], "commitmentAcknowledged": True}
    )

    response = await client.get("/api/opportunities", params={"sort": "most-applied"})
    assert _titles(response) == ["Busy", "Quiet", "Empty"]
    counts = {opp["title"]: opp["_count"]["applications"] for opp in response.json()["opportunities"]}
    assert counts == {"Busy": 2, "Quiet": 1, "Empty": 0}


async def test_invalid_sort(client: AsyncClient) -> None:
    response = await client.get("/api/opportunities", params={"sort": "oldest"})
    assert response.status_code == 400


async def test_paging(client: AsyncClient, create_opportunity) -> None:
    for i in range(5):
        await create_opportunity(title=f"Opportunity {i}")

    response = await client.get("/api/opportunities", params={"limit": 2, "offset": 2})
    data = response.json()
    assert data["total"] == 5
    assert data["limit"] == 2
    assert data["offset"] == 2
    assert _titles(response) == ["Opportunity 2", "Opportunity 1"]


async def test_limit_is_capped(client: AsyncClient) -> None:
    response = await client.get("/api/opportunities", params={"limit": 5000})
    assert response.json()["limit"] == 100


async def test_private_hidden_from_students(client: AsyncClient, create_opportunity, student, admin) -> None:
    await create_opportunity(title="Public")
    private = await create_opportunity(title="Staff only", visibility="private")

    assert _titles(await client.get("/api/opportunities")) == ["Public"]
    assert _titles(await student.client.get("/api/opportunities")) == ["Public"]
    assert sorted(_titles(await admin.client.get("/api/opportunities"))) == ["Public", "Staff only"]

    assert (await student.client.get(f"/api/opportunities/{private['id']}")).status_code == 404
    assert (await admin.client.get(f"/api/opportunities/{private['id']}")).status_code == 200


async def test_detail(client: AsyncClient, create_opportunity) -> None:
    created = await create_opportunity(title="Detail", contactEmail="social.impact@iimb.ac.in")
    response = await client.get(f"/api/opportunities/{created['id']}")
    assert response.status_code == 200
    data = response.json()
    assert data["title"] == "Detail"
    assert data["contactEmail"] == "social.impact@iimb.ac.in"
    assert data["_count"] == {"applications": 0}
