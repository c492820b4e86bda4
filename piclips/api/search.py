from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from piclips.core.exceptions import InvalidRequestError
from piclips.db.database import get_db
from piclips.models.users import Users
from piclips.schemas.search import SearchType
from piclips.schemas.user import UserSummary
from piclips.services.user_service import UserService
from piclips.utils.security import get_current_user

search_router = APIRouter()


@search_router.get("", response_model=List[UserSummary])
async def search_users(
    term: Optional[str] = Query(default=None),
    type_: Optional[str] = Query(default=None, alias="type"),
    user: Users = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if not term or not term.strip():
        raise InvalidRequestError("Invalid search term")

    try:
        search_type = SearchType(type_)
    except ValueError:
        raise InvalidRequestError("Invalid search type")

    results = await UserService(db).search(term.strip(), search_type)
    logger.debug(f"Search '{term}' ({search_type.value}) by {user.id} returned {len(results)} users")
    return [UserSummary.model_validate(result) for result in results]
