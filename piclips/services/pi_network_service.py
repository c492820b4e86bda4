from typing import Any, Dict, Optional

import httpx
from loguru import logger

from piclips.core.config import PiNetworkSettings
from piclips.core.exceptions import AuthenticationError


class PiNetworkClient:
    def __init__(self, settings: PiNetworkSettings, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self.base_url = str(settings.platform_api_url).rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=settings.timeout_seconds)

    async def fetch_me(self, access_token: str) -> Dict[str, Any]:
        try:
            response = await self.client.get(
                f"{self.base_url}/v2/me",
                headers={"Authorization": f"Bearer {access_token}"},
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(f"Pi platform rejected access token: {e.response.status_code}")
            raise AuthenticationError("Invalid access token")
        except httpx.HTTPError as e:
            logger.error(f"Pi platform request failed: {e}")
            raise AuthenticationError("Could not verify access token")

    async def verify_identity(self, uid: str, access_token: Optional[str]) -> str:
        if not self.settings.verify_identity:
            return uid

        if not access_token:
            raise AuthenticationError("No access token provided")

        me = await self.fetch_me(access_token)
        verified_uid = me.get("uid")
        if verified_uid != uid:
            logger.warning(f"Pi identity mismatch: claimed {uid}, token belongs to {verified_uid}")
            raise AuthenticationError("Access token does not match user")

        return verified_uid

    async def close(self):
        await self.client.aclose()
