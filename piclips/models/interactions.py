import enum
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Uuid, func
from sqlalchemy.orm import relationship

from piclips.db.database import Base, utcnow


class InteractionType(str, enum.Enum):
    LIKE = "like"
    VIEW = "view"
    SHARE = "share"


class Interaction(Base):
    __tablename__ = "interactions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    video_id = Column(Uuid, ForeignKey("videos.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    video = relationship("Video", back_populates="interactions")
