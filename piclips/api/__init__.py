from fastapi import APIRouter
from piclips.api import search, users, videos

api_router = APIRouter(prefix="/api")

api_router.include_router(users.users_router, prefix="/users", tags=["users"])
api_router.include_router(videos.videos_router, prefix="/videos", tags=["videos"])
api_router.include_router(search.search_router, prefix="/search", tags=["search"])

__all__ = ["api_router"]
