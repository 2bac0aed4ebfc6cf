# app/services/identity/client.py
"""
Admin client for the identity provider (GoTrue-compatible admin API).

Only the two calls the account saga needs: ban a user and read a user's
ban state.
"""
import logging
from datetime import datetime
from typing import Optional

import httpx

from app.core.config import settings
from app.core.exceptions import ServiceUnavailableError

logger = logging.getLogger(__name__)

# Effectively permanent; lifted manually by clearing the ban.
PERMANENT_BAN_DURATION = "876000h"


class IdentityAdminError(Exception):
    """The identity provider rejected or failed an admin call."""


class IdentityAdminClient:
    def __init__(
        self,
        base_url: Optional[str],
        service_key: Optional[str],
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/") if base_url else None
        self.service_key = service_key
        self.timeout = timeout
        self._transport = transport

    def is_configured(self) -> bool:
        return bool(self.base_url and self.service_key)

    def _headers(self) -> dict:
        return {
            "apikey": self.service_key,
            "Authorization": f"Bearer {self.service_key}",
        }

    def _user_url(self, user_id: str) -> str:
        return f"{self.base_url}/auth/v1/admin/users/{user_id}"

    def _require_config(self) -> None:
        if not self.is_configured():
            raise ServiceUnavailableError("Auth service not configured", service="identity")

    async def ban_user(self, user_id: str) -> None:
        self._require_config()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.put(
                    self._user_url(user_id),
                    headers=self._headers(),
                    json={"ban_duration": PERMANENT_BAN_DURATION},
                )
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to ban identity user {user_id}: {e}")
            raise IdentityAdminError(str(e)) from e
        logger.info(f"Identity user {user_id} banned")

    async def is_banned(self, user_id: str) -> bool:
        self._require_config()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(self._user_url(user_id), headers=self._headers())
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to read identity user {user_id}: {e}")
            raise IdentityAdminError(str(e)) from e

        banned_until = response.json().get("banned_until")
        if not banned_until:
            return False
        try:
            until = datetime.fromisoformat(banned_until.replace("Z", "+00:00"))
        except ValueError:
            # Unparseable but present: treat as banned
            return True
        return until > datetime.now(until.tzinfo)


def get_identity_client() -> IdentityAdminClient:
    return IdentityAdminClient(
        base_url=settings.IDENTITY_URL,
        service_key=settings.IDENTITY_SERVICE_KEY,
        timeout=settings.IDENTITY_TIMEOUT_SECONDS,
    )
