from typing import Any, Dict, List, Optional

import httpx
from loguru import logger

from piclips_client.config import ClientSettings


class APIClient:
    """Async client for the PiClips REST API.

    Mirrors the calls the web client makes. Failed calls are logged and
    return ``None`` (``False`` for deletes) rather than raising.
    """

    def __init__(self, settings: ClientSettings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self.base_url = settings.backend_api_url.rstrip("/")
        self.token: Optional[str] = None
        self.client = httpx.AsyncClient(timeout=settings.timeout_seconds, transport=transport)

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    async def _request(self, method: str, path: str, **kwargs) -> Optional[Any]:
        try:
            response = await self.client.request(
                method,
                f"{self.base_url}/api{path}",
                headers=self._headers(),
                **kwargs,
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"API error on {method} {path}: {e.response.status_code} - {e.response.text}")
            return None
        except Exception as e:
            logger.exception(f"Error calling {method} {path}: {e}")
            return None

    async def authenticate(self, uid: str, username: str, access_token: str) -> Optional[Dict[str, Any]]:
        data = await self._request(
            "POST",
            "/users/authenticate",
            json={"uid": uid, "username": username, "access_token": access_token},
        )
        if data:
            self.token = data["token"]
            return data["user"]
        return None

    async def get_me(self) -> Optional[Dict[str, Any]]:
        return await self._request("GET", "/users/me")

    async def list_videos(self) -> Optional[List[Dict[str, Any]]]:
        return await self._request("GET", "/videos")

    async def get_video(self, video_id: str) -> Optional[Dict[str, Any]]:
        return await self._request("GET", f"/videos/{video_id}")

    async def upload_video(
        self,
        filename: str,
        content: bytes,
        title: str,
        description: Optional[str] = None,
        privacy: str = "public",
        content_type: str = "video/mp4",
    ) -> Optional[Dict[str, Any]]:
        form = {"title": title, "privacy": privacy}
        if description:
            form["description"] = description
        return await self._request(
            "POST",
            "/videos",
            data=form,
            files={"video": (filename, content, content_type)},
        )

    async def delete_video(self, video_id: str) -> bool:
        return await self._request("DELETE", f"/videos/{video_id}") is not None

    async def toggle_like(self, video_id: str) -> Optional[Dict[str, Any]]:
        return await self._request("POST", f"/videos/{video_id}/like")

    async def add_comment(self, video_id: str, content: str) -> Optional[Dict[str, Any]]:
        return await self._request("POST", f"/videos/{video_id}/comment", json={"content": content})

    async def list_comments(self, video_id: str) -> Optional[List[Dict[str, Any]]]:
        return await self._request("GET", f"/videos/{video_id}/comments")

    async def delete_comment(self, video_id: str, comment_id: str) -> bool:
        return await self._request("DELETE", f"/videos/{video_id}/comments/{comment_id}") is not None

    async def send_tip(self, video_id: str, amount: int) -> Optional[Dict[str, Any]]:
        return await self._request("POST", f"/videos/{video_id}/tip", json={"amount": amount})

    async def list_tips(self, video_id: str) -> Optional[List[Dict[str, Any]]]:
        return await self._request("GET", f"/videos/{video_id}/tips")

    async def tip_summary(self, video_id: str) -> Optional[Dict[str, Any]]:
        return await self._request("GET", f"/videos/{video_id}/tips/summary")

    async def search_users(self, term: str, search_type: str = "name") -> Optional[List[Dict[str, Any]]]:
        return await self._request("GET", "/search", params={"term": term, "type": search_type})

    async def close(self):
        await self.client.aclose()
