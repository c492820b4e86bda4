import asyncio
import sys
from pathlib import Path
from typing import Dict
from uuid import UUID

from loguru import logger
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

sys.path.insert(0, str(Path(__file__).parent.parent))

from piclips.core.config import DatabaseSettings
from piclips.db.database import create_engine, create_sessionmaker
from piclips.models.users import Users
from piclips.models.videos import Video


async def update_video_counts(session: AsyncSession) -> Dict[UUID, int]:
    counts = await session.execute(
        select(Video.user_id, func.count(Video.id)).group_by(Video.user_id)
    )
    count_by_user = dict(counts.all())

    users = await session.execute(select(Users.id, Users.username, Users.uploaded_videos_count))
    result = {}
    for user_id, username, stored in users.all():
        actual = count_by_user.get(user_id, 0)
        if actual != stored:
            logger.info(f"{username}: stored {stored}, counted {actual}")
            await session.execute(
                update(Users).where(Users.id == user_id).values(uploaded_videos_count=actual)
            )
        logger.debug(f"{username}: {actual} videos")
        result[user_id] = actual

    await session.commit()
    return result


async def main():
    logger.info("Starting video count update...")

    engine = create_engine(DatabaseSettings())
    try:
        sessionmaker = create_sessionmaker(engine)

        async with sessionmaker() as session:
            result = await update_video_counts(session)

        logger.success(f"Video count update completed for {len(result)} users")

    except Exception as e:
        logger.exception(f"Error updating video counts: {e}")
        sys.exit(1)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
