"""Unit tests for the apply-dialog state."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from samarpan.client.api import ApiError
from samarpan.client.apply import ApplicationDraft


def _client(result=None, error=None):
    client = MagicMock()
    client.apply = AsyncMock(return_value=result, side_effect=error)
    return client


class TestApplicationDraft:
    def test_submit_disabled_until_acknowledged(self):
        draft = ApplicationDraft("opp-1")
        assert not draft.can_submit
        draft.acknowledge()
        assert draft.can_submit
        draft.acknowledge(False)
        assert not draft.can_submit

    def test_submit_disabled_while_in_flight(self):
        draft = ApplicationDraft("opp-1", commitment_acknowledged=True, submitting=True)
        assert not draft.can_submit

    def test_reset(self):
        draft = ApplicationDraft("opp-1", commitment_acknowledged=True, submitting=True, error="boom")
        draft.reset()
        assert draft == ApplicationDraft("opp-1")

    @pytest.mark.asyncio
    async def test_submit_without_acknowledgment_raises(self):
        client = _client()
        with pytest.raises(RuntimeError):
            await ApplicationDraft("opp-1").submit(client)
        client.apply.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_submit_success(self):
        client = _client(result={"id": "app-1", "status": "pending"})
        draft = ApplicationDraft("opp-1", commitment_acknowledged=True)

        result = await draft.submit(client, notes="Free on weekends")

        assert result["status"] == "pending"
        client.apply.assert_awaited_once_with("opp-1", True, notes="Free on weekends")
        assert draft.submitting is False
        assert draft.error is None

    @pytest.mark.asyncio
    async def test_submit_failure_keeps_message(self):
        client = _client(error=ApiError(400, "You have already applied to this opportunity"))
        draft = ApplicationDraft("opp-1", commitment_acknowledged=True)

        with pytest.raises(ApiError):
            await draft.submit(client)

        assert draft.error == "You have already applied to this opportunity"
        assert draft.submitting is False
        assert draft.can_submit
