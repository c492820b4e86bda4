import asyncio

import httpx

from piclips.core.config import Environment


async def test_slow_request_times_out(app, client):
    app.state.settings.app.request_timeout_seconds = 0.05

    @app.get("/slow")
    async def slow():
        await asyncio.sleep(1)
        return {"done": True}

    response = await client.get("/slow")

    assert response.status_code == 408
    assert response.json() == {"detail": "Request has timed out."}


async def test_unexpected_error_body_hides_details_outside_development(app):
    @app.get("/broken")
    async def broken():
        raise RuntimeError("disk on fire")

    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/broken")
        assert response.status_code == 500
        assert response.json() == {"detail": "Internal server error"}

        app.state.settings.app.app_env = Environment.DEVELOPMENT
        response = await client.get("/broken")
        assert response.status_code == 500
        assert response.json() == {"detail": "Internal server error", "error": "disk on fire"}


async def test_health(client):
    assert (await client.get("/health")).json() == {"status": "ok"}
    assert (await client.get("/")).json() == {"message": "PiClips API running"}
