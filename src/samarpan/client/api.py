"""Async HTTP client for the Samarpan API.

The session cookie set by ``login`` is kept in the underlying
``httpx.AsyncClient`` cookie jar, so later calls are authenticated.
"""

from __future__ import annotations

from typing import Any

import httpx


class ApiError(Exception):
    """Non-2xx response from the API."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")


class SamarpanClient:
    """Thin typed wrapper over the JSON API. Payloads stay camelCase dicts."""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._http = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> SamarpanClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:  # noqa: ANN401
        response = await self._http.request(method, path, **kwargs)
        if response.is_error:
            raise ApiError(response.status_code, _error_message(response))
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # --- Auth ---

    async def register(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        program: str | None = None,
    ) -> dict[str, Any]:
        body = {"email": email, "password": password, "firstName": first_name, "lastName": last_name}
        if program is not None:
            body["program"] = program
        return await self._request("POST", "/api/register", json=body)

    async def login(self, email: str, password: str) -> dict[str, Any]:
        return await self._request("POST", "/api/login", json={"email": email, "password": password})

    async def logout(self) -> dict[str, Any]:
        return await self._request("POST", "/api/logout")

    async def me(self) -> dict[str, Any]:
        return await self._request("GET", "/api/auth/user")

    async def update_profile(self, **fields: Any) -> dict[str, Any]:  # noqa: ANN401
        """Update profile fields; keys are camelCase (``anonymizeLeaderboard=True``)."""
        return await self._request("PATCH", "/api/auth/user", json=fields)

    async def delete_account(self) -> dict[str, Any]:
        return await self._request("DELETE", "/api/auth/account")

    # --- Opportunities ---

    async def list_opportunities(self, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """One page of opportunities; ``params`` usually comes from ``OpportunityBrowser.to_params()``."""
        return await self._request("GET", "/api/opportunities", params=params or {})

    async def get_opportunity(self, opportunity_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/api/opportunities/{opportunity_id}")

    async def create_opportunity(self, data: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", "/api/opportunities", json=data)

    async def update_opportunity(self, opportunity_id: str, changes: dict[str, Any]) -> dict[str, Any]:
        return await self._request("PUT", f"/api/opportunities/{opportunity_id}", json=changes)

    async def close_opportunity(self, opportunity_id: str) -> dict[str, Any]:
        return await self._request("PATCH", f"/api/opportunities/{opportunity_id}/close")

    async def delete_opportunity(self, opportunity_id: str) -> None:
        await self._request("DELETE", f"/api/opportunities/{opportunity_id}")

    async def my_opportunities(self) -> list[dict[str, Any]]:
        return await self._request("GET", "/api/admin/opportunities")

    # --- Applications ---

    async def apply(self, opportunity_id: str, commitment_acknowledged: bool, notes: str | None = None) -> dict[str, Any]:
        body: dict[str, Any] = {
            "opportunityId": opportunity_id,
            "commitmentAcknowledged": commitment_acknowledged,
        }
        if notes:
            body["notes"] = notes
        return await self._request("POST", "/api/applications", json=body)

    async def user_applications(self, user_id: str) -> list[dict[str, Any]]:
        return await self._request("GET", f"/api/applications/user/{user_id}")

    async def opportunity_applications(self, opportunity_id: str) -> list[dict[str, Any]]:
        return await self._request("GET", f"/api/applications/opportunity/{opportunity_id}")

    async def submit_hours(self, application_id: str, hours: int) -> dict[str, Any]:
        return await self._request("PATCH", f"/api/applications/{application_id}/submit-hours", json={"hours": hours})

    async def update_application_status(self, application_id: str, status: str, **extra: Any) -> dict[str, Any]:  # noqa: ANN401
        return await self._request(
            "PUT", f"/api/applications/{application_id}/status", json={"status": status, **extra}
        )

    async def approve_hours(
        self, application_id: str, hours: int | None = None, feedback: str | None = None
    ) -> dict[str, Any]:
        body = {k: v for k, v in {"hours": hours, "feedback": feedback}.items() if v is not None}
        return await self._request("POST", f"/api/applications/{application_id}/approve-hours", json=body)

    async def reject_hours(self, application_id: str, feedback: str) -> dict[str, Any]:
        return await self._request(
            "POST", f"/api/applications/{application_id}/reject-hours", json={"feedback": feedback}
        )

    # --- Users, badges, leaderboard, analytics ---

    async def user_stats(self, user_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/api/users/{user_id}/stats")

    async def badges(self) -> list[dict[str, Any]]:
        return await self._request("GET", "/api/badges")

    async def user_badges(self, user_id: str) -> list[dict[str, Any]]:
        return await self._request("GET", f"/api/badges/user/{user_id}")

    async def leaderboard(
        self,
        limit: int | None = None,
        timeframe: str = "all",
        opportunity_id: str | None = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"timeframe": timeframe}
        if limit is not None:
            params["limit"] = limit
        if opportunity_id:
            params["opportunityId"] = opportunity_id
        return await self._request("GET", "/api/leaderboard", params=params)

    async def analytics(self) -> dict[str, Any]:
        return await self._request("GET", "/api/analytics")


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and "message" in body:
        return str(body["message"])
    return response.text
