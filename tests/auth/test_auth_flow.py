"""Registration, login, sessions, profile and account deletion."""

import pytest
from httpx import AsyncClient

from conftest import PASSWORD, signup

pytestmark = pytest.mark.asyncio


def _register_body(email: str, password: str = PASSWORD, **extra):
    return {"email": email, "password": password, "firstName": "Asha", "lastName": "Rao", **extra}


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


async def test_register_student(client: AsyncClient) -> None:
    response = await client.post("/api/register", json=_register_body("Asha.Rao@IIMB.ac.in"))
    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "Registration successful"
    user = data["user"]
    assert user["email"] == "asha.rao@iimb.ac.in"
    assert user["role"] == "student"
    assert user["program"] == "PGP"
    assert user["coins"] == 0
    assert user["anonymizeLeaderboard"] is False
    assert "password" not in user
    assert "passwordHash" not in user


async def test_register_does_not_sign_in(client: AsyncClient) -> None:
    await client.post("/api/register", json=_register_body("asha.rao@iimb.ac.in"))
    response = await client.get("/api/auth/user")
    assert response.status_code == 401


async def test_register_faculty_becomes_admin(client: AsyncClient) -> None:
    response = await client.post("/api/register", json=_register_body("faculty.mehta@iimb.ac.in"))
    assert response.status_code == 201
    assert response.json()["user"]["role"] == "admin"


async def test_register_keeps_program(client: AsyncClient) -> None:
    response = await client.post("/api/register", json=_register_body("asha.rao@iimb.ac.in", program="EPGP"))
    assert response.json()["user"]["program"] == "EPGP"


async def test_register_rejects_outside_domain(client: AsyncClient) -> None:
    response = await client.post("/api/register", json=_register_body("asha@gmail.com"))
    assert response.status_code == 400
    assert "@iimb.ac.in" in response.json()["message"]


async def test_register_rejects_weak_password(client: AsyncClient) -> None:
    response = await client.post("/api/register", json=_register_body("asha.rao@iimb.ac.in", password="weakpass"))
    assert response.status_code == 400
    assert "uppercase" in response.json()["message"]


async def test_register_duplicate_email(client: AsyncClient) -> None:
    await client.post("/api/register", json=_register_body("asha.rao@iimb.ac.in"))
    response = await client.post("/api/register", json=_register_body("ASHA.RAO@iimb.ac.in"))
    assert response.status_code == 400
    assert response.json()["message"] == "Account already exists with this email"


async def test_register_requires_names(client: AsyncClient) -> None:
    response = await client.post(
        "/api/register", json={"email": "asha.rao@iimb.ac.in", "password": PASSWORD, "firstName": ""}
    )
    assert response.status_code == 400


# ---------------------------------------------------------------------------
# Login / logout
# ---------------------------------------------------------------------------


async def test_login_sets_session_cookie(client: AsyncClient) -> None:
    await client.post("/api/register", json=_register_body("asha.rao@iimb.ac.in"))
    response = await client.post("/api/login", json={"email": "asha.rao@iimb.ac.in", "password": PASSWORD})

    assert response.status_code == 200
    assert response.json()["message"] == "Login successful"
    set_cookie = response.headers["set-cookie"]
    assert set_cookie.startswith("samarpan.sid=")
    assert "HttpOnly" in set_cookie
    assert "samesite=lax" in set_cookie.lower()

    me = await client.get("/api/auth/user")
    assert me.status_code == 200
    assert me.json()["email"] == "asha.rao@iimb.ac.in"


async def test_login_wrong_password(client: AsyncClient) -> None:
    await client.post("/api/register", json=_register_body("asha.rao@iimb.ac.in"))
    response = await client.post("/api/login", json={"email": "asha.rao@iimb.ac.in", "password": "WrongPass1"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid email or password"


async def test_login_unknown_user(client: AsyncClient) -> None:
    response = await client.post("/api/login", json={"email": "nobody@iimb.ac.in", "password": PASSWORD})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid email or password"


async def test_login_lockout(client: AsyncClient, fake_redis) -> None:
    await client.post("/api/register", json=_register_body("asha.rao@iimb.ac.in"))
    for _ in range(10):
        response = await client.post("/api/login", json={"email": "asha.rao@iimb.ac.in", "password": "WrongPass1"})
        assert response.status_code == 401

    # Even the right password is refused while locked.
    response = await client.post("/api/login", json={"email": "asha.rao@iimb.ac.in", "password": PASSWORD})
    assert response.status_code == 429
    assert any(key.startswith("login_attempts:") for key in fake_redis.store)


async def test_successful_login_clears_failures(client: AsyncClient, fake_redis) -> None:
    await client.post("/api/register", json=_register_body("asha.rao@iimb.ac.in"))
    await client.post("/api/login", json={"email": "asha.rao@iimb.ac.in", "password": "WrongPass1"})
    response = await client.post("/api/login", json={"email": "asha.rao@iimb.ac.in", "password": PASSWORD})
    assert response.status_code == 200
    assert not any(key.startswith("login_attempts:") for key in fake_redis.store)


async def test_logout_ends_session(client: AsyncClient) -> None:
    await signup(client, "asha.rao@iimb.ac.in")
    sid = client.cookies.get("samarpan.sid")

    response = await client.post("/api/logout")
    assert response.status_code == 200
    assert response.json()["message"] == "Logged out successfully"

    # The old session id is dead server-side, not only removed from the browser.
    response = await client.get("/api/auth/user", headers={"Authorization": f"Bearer {sid}"})
    assert response.status_code == 401


async def test_logout_twice_is_fine(client: AsyncClient) -> None:
    await signup(client, "asha.rao@iimb.ac.in")
    await client.post("/api/logout")
    response = await client.post("/api/logout")
    assert response.status_code == 200


async def test_bearer_session_id(client: AsyncClient, make_client) -> None:
    await signup(client, "asha.rao@iimb.ac.in")
    sid = client.cookies.get("samarpan.sid")

    other = make_client()
    response = await other.get("/api/auth/user", headers={"Authorization": f"Bearer {sid}"})
    assert response.status_code == 200
    assert response.json()["email"] == "asha.rao@iimb.ac.in"


async def test_unknown_session_is_anonymous(client: AsyncClient) -> None:
    response = await client.get("/api/auth/user", headers={"Authorization": "Bearer not-a-session"})
    assert response.status_code == 401


# ---------------------------------------------------------------------------
# Signed-in user
# ---------------------------------------------------------------------------


async def test_current_user_has_counts(student) -> None:
    response = await student.client.get("/api/auth/user")
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == student.id
    assert data["_count"] == {"applications": 0, "completedApplications": 0, "badges": 0}


async def test_update_profile(student) -> None:
    response = await student.client.patch(
        "/api/auth/user",
        json={"firstName": "Ashwini", "program": "EPGP", "anonymizeLeaderboard": True},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["firstName"] == "Ashwini"
    assert data["lastName"] == "Rao"
    assert data["program"] == "EPGP"
    assert data["anonymizeLeaderboard"] is True


async def test_update_profile_rejects_blank_name(student) -> None:
    response = await student.client.patch("/api/auth/user", json={"firstName": ""})
    assert response.status_code == 400


async def test_profile_requires_login(client: AsyncClient) -> None:
    response = await client.patch("/api/auth/user", json={"firstName": "X"})
    assert response.status_code == 401


# ---------------------------------------------------------------------------
# Account deletion
# ---------------------------------------------------------------------------


async def test_delete_account(student, client: AsyncClient) -> None:
    response = await student.client.delete("/api/auth/account")
    assert response.status_code == 200
    assert response.json()["message"] == "Account deleted"

    assert (await student.client.get("/api/auth/user")).status_code == 401
    response = await client.post("/api/login", json={"email": "asha.rao@iimb.ac.in", "password": PASSWORD})
    assert response.status_code == 401


async def test_delete_account_removes_applications(student, create_opportunity, admin) -> None:
    opportunity = await create_opportunity()
    await student.client.post(
        "/api/applications", json={"opportunityId": opportunity["id"], "commitmentAcknowledged": True}
    )

    assert (await student.client.delete("/api/auth/account")).status_code == 200

    response = await admin.client.get(f"/api/applications/opportunity/{opportunity['id']}")
    assert response.json() == []


async def test_admin_with_opportunities_cannot_delete(admin, create_opportunity) -> None:
    await create_opportunity()
    response = await admin.client.delete("/api/auth/account")
    assert response.status_code == 409
    assert (await admin.client.get("/api/auth/user")).status_code == 200


async def test_users_can_be_registered_again_after_deletion(client: AsyncClient) -> None:
    await signup(client, "asha.rao@iimb.ac.in")
    await client.delete("/api/auth/account")
    response = await client.post("/api/register", json=_register_body("asha.rao@iimb.ac.in"))
    assert response.status_code == 201
