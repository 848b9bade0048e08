"""Apply-dialog state: the commitment checkbox and the in-flight guard."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from samarpan.client.api import ApiError, SamarpanClient


@dataclass
class ApplicationDraft:
    opportunity_id: str
    commitment_acknowledged: bool = False
    submitting: bool = False
    error: str | None = None

    @property
    def can_submit(self) -> bool:
        return self.commitment_acknowledged and not self.submitting

    def acknowledge(self, value: bool = True) -> None:
        self.commitment_acknowledged = value

    def reset(self) -> None:
        """State for a freshly opened dialog."""
        self.commitment_acknowledged = False
        self.submitting = False
        self.error = None

    async def submit(self, client: SamarpanClient, notes: str | None = None) -> dict[str, Any]:
        """
        Send the application.

        Raises:
            RuntimeError: If submission is not currently allowed.
            ApiError: If the API rejects the application (message kept in ``error``).
        """
        if not self.can_submit:
            msg = "Acknowledge the time commitment before applying"
            raise RuntimeError(msg)

        self.submitting = True
        self.error = None
        try:
            return await client.apply(self.opportunity_id, self.commitment_acknowledged, notes=notes)
        except ApiError as e:
            self.error = e.message
            raise
        finally:
            self.submitting = False
