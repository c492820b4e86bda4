import httpx
import pytest

from piclips.core.config import PiNetworkSettings
from piclips.core.exceptions import AuthenticationError
from piclips.services.pi_network_service import PiNetworkClient


def pi_platform_handler(request: httpx.Request) -> httpx.Response:
    token = request.headers.get("Authorization", "").removeprefix("Bearer ")
    if not token.startswith("pi-"):
        return httpx.Response(401, json={"error": "invalid_token"})
    return httpx.Response(200, json={"uid": token[len("pi-"):]})


def make_client(handler, **settings) -> PiNetworkClient:
    return PiNetworkClient(
        PiNetworkSettings(platform_api_url="https://pi.test", **settings),
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


async def test_verify_identity_accepts_matching_token():
    client = make_client(pi_platform_handler)
    assert await client.verify_identity("uid-1", "pi-uid-1") == "uid-1"
    await client.close()


async def test_fetch_me_sends_bearer_token():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        return httpx.Response(200, json={"uid": "uid-1", "username": "alice"})

    client = make_client(handler)
    me = await client.fetch_me("token-123")
    await client.close()

    assert me == {"uid": "uid-1", "username": "alice"}
    assert seen == {"url": "https://pi.test/v2/me", "auth": "Bearer token-123"}


@pytest.mark.parametrize(
    "uid, token, detail",
    [
        ("uid-1", None, "No access token provided"),
        ("uid-1", "forged", "Invalid access token"),
        ("uid-1", "pi-uid-2", "Access token does not match user"),
    ],
)
async def test_verify_identity_rejections(uid, token, detail):
    client = make_client(pi_platform_handler)
    with pytest.raises(AuthenticationError) as exc_info:
        await client.verify_identity(uid, token)
    await client.close()

    assert exc_info.value.detail == detail
    assert exc_info.value.status_code == 401


async def test_unreachable_platform_is_reported():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(handler)
    with pytest.raises(AuthenticationError) as exc_info:
        await client.verify_identity("uid-1", "pi-uid-1")
    await client.close()

    assert exc_info.value.detail == "Could not verify access token"


async def test_verification_can_be_disabled():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("platform must not be called")

    client = make_client(handler, verify_identity=False)
    assert await client.verify_identity("uid-1", None) == "uid-1"
    await client.close()
