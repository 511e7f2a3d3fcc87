"""Registry synchronization: deletion check, then idempotent upsert by external_id."""

import logging
import re
from dataclasses import dataclass
from typing import Literal, Optional

import httpx
from pydantic import BaseModel

from grants_agent.errors import IngestError
from grants_agent.models.opportunity import OpportunityRecord

logger = logging.getLogger(__name__)

SyncAction = Literal["created", "updated", "skipped"]
_ACTIONS = ("created", "updated", "skipped")


@dataclass
class RegistryStatus:
    """What the registry currently holds for an external_id."""

    exists: bool = False
    is_deleted: bool = False
    id: Optional[str] = None


class SyncResult(BaseModel):
    """Outcome of one sync; action comes from the registry when it says so."""

    action: SyncAction
    id: Optional[str] = None
    reason: Optional[str] = None


class IngestSynchronizer:
    """
    Client for the registry ingest endpoint.

    Usage:
        async with IngestSynchronizer(endpoint, api_key) as sync:
            result = await sync.sync(record)
    """

    def __init__(
        self,
        endpoint_url: str,
        api_key: str,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        self.endpoint_url = endpoint_url
        self._headers = {"Content-Type": "application/json", "x-api-key": api_key}
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> "IngestSynchronizer":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @property
    def status_url(self) -> str:
        """GET endpoint for lookups: the ingest URL with exactly one /ingest suffix."""
        base = re.sub(r"/ingest$", "", self.endpoint_url.rstrip("/"))
        return f"{base}/ingest"

    async def check(self, external_id: str) -> RegistryStatus:
        """
        Look up external_id. 404 means not found. Other error statuses are
        logged and treated as not found; transport errors raise IngestError.
        """
        try:
            resp = await self._client.get(
                self.status_url,
                params={"external_id": external_id},
                headers=self._headers,
            )
        except httpx.HTTPError as e:
            raise IngestError(f"Registry status check failed: {e}") from e

        if resp.status_code == 404:
            return RegistryStatus()
        if resp.is_error:
            logger.warning(
                "Could not check registry status (%d), will attempt to send", resp.status_code
            )
            return RegistryStatus()

        try:
            payload = resp.json()
        except ValueError:
            logger.warning("Registry status response is not JSON, will attempt to send")
            return RegistryStatus()

        opportunity = payload.get("opportunity") if isinstance(payload, dict) else None
        if not isinstance(opportunity, dict):
            return RegistryStatus()
        existing_id = opportunity.get("id")
        return RegistryStatus(
            exists=True,
            is_deleted=opportunity.get("deleted_at") is not None,
            id=str(existing_id) if existing_id is not None else None,
        )

    async def sync(self, record: OpportunityRecord) -> SyncResult:
        """
        Skip records the registry's users deleted; otherwise upsert and report
        the registry's own created/updated classification.
        """
        if not record.external_id:
            raise IngestError("Record has no external_id")

        status = await self.check(record.external_id)
        if status.exists and status.is_deleted:
            logger.info("Skipped: record was deleted by user (ID: %s)", status.id or "unknown")
            return SyncResult(action="skipped", id=status.id, reason="deleted_by_user")

        body = record.to_registry_payload()
        logger.info(
            "%s opportunity %r (external_id=%s)",
            "Updating" if status.exists else "Creating",
            record.title,
            record.external_id,
        )
        try:
            resp = await self._client.post(self.endpoint_url, json=body, headers=self._headers)
        except httpx.HTTPError as e:
            raise IngestError(f"Registry upsert failed: {e}") from e

        if resp.is_error:
            raise IngestError(
                f"Ingest failed: {resp.status_code} {resp.reason_phrase}",
                status_code=resp.status_code,
                body=resp.text,
            )

        try:
            payload = resp.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        guessed: SyncAction = "updated" if status.exists else "created"
        action = payload.get("action")
        if action not in _ACTIONS:
            action = guessed
        opportunity = payload.get("opportunity")
        server_id = opportunity.get("id") if isinstance(opportunity, dict) else None
        record_id = server_id if server_id is not None else status.id

        logger.info("%s - Opportunity ID: %s", action, record_id or "N/A")
        return SyncResult(
            action=action,
            id=str(record_id) if record_id is not None else None,
            reason=payload.get("reason") or ("deleted_by_user" if action == "skipped" else None),
        )
