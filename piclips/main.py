import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
import uvicorn
from loguru import logger

from piclips.api import api_router
from piclips.core.config import AppSettings, Settings, load_settings
from piclips.core.exceptions import PiClipsError
from piclips.db.database import create_engine, create_sessionmaker
from piclips.services.pi_network_service import PiNetworkClient
from piclips.services.storage_service import ObjectStorage


def setup_logging(settings: AppSettings):
    if not settings.log_file:
        return
    logger.add(
        settings.log_file,
        level=settings.app_log_level.value.upper(),
        rotation=settings.log_rotation,
        compression=settings.log_compression.value,
        format=settings.log_format,
    )

def register_exception_handlers(app: FastAPI, settings: AppSettings):
    @app.exception_handler(PiClipsError)
    async def handle_service_error(request: Request, exc: PiClipsError):
        if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
        else:
            logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.detail}")
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == status.HTTP_401_UNAUTHORIZED else None
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=headers)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        content = {"detail": "Internal server error"}
        if settings.debug:
            content["error"] = str(exc)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)

def create_app(
    settings: Optional[Settings] = None,
    storage: Optional[ObjectStorage] = None,
    pi_client: Optional[PiNetworkClient] = None,
):
    settings = settings or load_settings()
    setup_logging(settings.app)

    engine = create_engine(settings.database)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"{settings.app.app_name} starting ({settings.app.app_env.value})")
        yield
        logger.info(f"{settings.app.app_name} shutting down")
        await app.state.pi_client.close()
        await engine.dispose()

    app = FastAPI(
        title=settings.app.app_name,
        description="API for the PiClips short-video application",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.sessionmaker = create_sessionmaker(engine)
    app.state.storage = storage or ObjectStorage(settings.storage)
    app.state.pi_client = pi_client or PiNetworkClient(settings.pi_network)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.app.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.middleware("http")
    async def request_timeout(request: Request, call_next):
        try:
            return await asyncio.wait_for(call_next(request), timeout=settings.app.request_timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(f"Request {request.method} {request.url.path} has timed out")
            return JSONResponse(
                status_code=status.HTTP_408_REQUEST_TIMEOUT,
                content={"detail": "Request has timed out."},
            )

    register_exception_handlers(app, settings.app)

    uploads_dir = Path(settings.app.uploads_dir)
    uploads_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=uploads_dir), name="uploads")

    @app.get("/")
    def read_root():
        return {"message": "PiClips API running"}
    @app.get("/health")
    async def health_check():
        return {"status": "ok"}
    app.include_router(api_router)

    return app


if __name__ == "__main__":
    app_settings = AppSettings()
    uvicorn.run(
        "piclips.main:create_app",
        factory=True,
        host=app_settings.app_host,
        port=app_settings.app_port,
        reload=app_settings.app_reload,
    )
