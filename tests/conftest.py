from typing import Any, Dict, List, Optional
from uuid import UUID

import httpx
import pytest
from sqlalchemy import select, update

from piclips.core.config import (
    AppSettings,
    DatabaseSettings,
    JWTSettings,
    PiNetworkSettings,
    Settings,
    StorageSettings,
)
from piclips.db.database import create_tables
from piclips.main import create_app
from piclips.models.users import Users
from piclips.services.pi_network_service import PiNetworkClient
from piclips.services.storage_service import ObjectStorage


class FakeS3Client:
    """Records object-store calls instead of talking to S3."""

    def __init__(self):
        self.objects: Dict[str, bytes] = {}
        self.deleted: List[str] = []
        self.fail_put = False
        self.fail_delete = False

    def put_object(self, Bucket: str, Key: str, Body: bytes, ContentType: str):
        if self.fail_put:
            raise RuntimeError("put failed")
        self.objects[Key] = Body

    def delete_object(self, Bucket: str, Key: str):
        if self.fail_delete:
            raise RuntimeError("delete failed")
        self.objects.pop(Key, None)
        self.deleted.append(Key)

    def generate_presigned_url(self, ClientMethod: str, Params: Dict[str, Any], ExpiresIn: int) -> str:
        return f"https://signed.test/{Params['Bucket']}/{Params['Key']}?expires={ExpiresIn}"


def pi_platform_handler(request: httpx.Request) -> httpx.Response:
    # tokens of the form "pi-<uid>" are valid for that uid
    auth = request.headers.get("Authorization", "")
    token = auth.removeprefix("Bearer ")
    if request.url.path != "/v2/me" or not token.startswith("pi-"):
        return httpx.Response(401, json={"error": "invalid_token"})
    uid = token[len("pi-"):]
    return httpx.Response(200, json={"uid": uid, "username": f"user_{uid}"})


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        app=AppSettings(
            app_name="PiClips Test",
            app_port=8000,
            uploads_dir=str(tmp_path / "uploads"),
            log_file=None,
            avatar_max_bytes=1024,
        ),
        database=DatabaseSettings(database_url=f"sqlite+aiosqlite:///{tmp_path / 'piclips.db'}"),
        jwt=JWTSettings(secret_key="test-secret-key-that-is-long-enough-for-hs256"),
        storage=StorageSettings(aws_region="us-east-1", bucket_name="piclips-test"),
        pi_network=PiNetworkSettings(platform_api_url="https://pi.test"),
    )


@pytest.fixture
def s3_client() -> FakeS3Client:
    return FakeS3Client()


@pytest.fixture
async def app(settings, s3_client):
    pi_client = PiNetworkClient(
        settings.pi_network,
        client=httpx.AsyncClient(transport=httpx.MockTransport(pi_platform_handler)),
    )
    application = create_app(
        settings,
        storage=ObjectStorage(settings.storage, client=s3_client),
        pi_client=pi_client,
    )
    await create_tables(application.state.engine)
    yield application
    await pi_client.close()
    await application.state.engine.dispose()


@pytest.fixture
async def client(app):
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as http_client:
        yield http_client


def auth_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def register(client):
    async def _register(uid: str, username: Optional[str] = None) -> Dict[str, Any]:
        response = await client.post(
            "/api/users/authenticate",
            json={"uid": uid, "username": username or uid, "access_token": f"pi-{uid}"},
        )
        assert response.status_code == 200, response.text
        data = response.json()
        return {"id": data["user"]["id"], "token": data["token"], "headers": auth_headers(data["token"])}

    return _register


@pytest.fixture
def set_balance(app):
    async def _set_balance(user_id: str, balance: int):
        async with app.state.sessionmaker() as session:
            await session.execute(
                update(Users).where(Users.id == UUID(user_id)).values(token_balance=balance)
            )
            await session.commit()

    return _set_balance


@pytest.fixture
def get_user_row(app):
    async def _get_user_row(user_id: str) -> Users:
        async with app.state.sessionmaker() as session:
            result = await session.execute(select(Users).where(Users.id == UUID(user_id)))
            return result.scalar_one()

    return _get_user_row


@pytest.fixture
def upload(client):
    async def _upload(headers: Dict[str, str], title: str = "My clip", privacy: str = "public", filename: str = "clip.mp4"):
        response = await client.post(
            "/api/videos",
            data={"title": title, "description": "a short clip", "privacy": privacy},
            files={"video": (filename, b"\x00\x00\x00\x18ftypmp42", "video/mp4")},
            headers=headers,
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _upload
