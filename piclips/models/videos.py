import enum
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Table, Text, Uuid, func
from sqlalchemy.orm import relationship

from piclips.db.database import Base, utcnow

DEFAULT_THUMBNAIL = "/placeholder.svg"


class Privacy(str, enum.Enum):
    PUBLIC = "public"
    PRIVATE = "private"
    UNLISTED = "unlisted"


video_likes = Table(
    "video_likes",
    Base.metadata,
    Column("video_id", Uuid, ForeignKey("videos.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True),
    Column("created_at", DateTime(timezone=True), server_default=func.now(), nullable=False),
)


class Video(Base):
    __tablename__ = "videos"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    url = Column(String, nullable=False)
    thumbnail = Column(String, nullable=False, default=DEFAULT_THUMBNAIL)
    privacy = Column(String, nullable=False, default=Privacy.PUBLIC.value, index=True)

    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    views = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    owner = relationship("Users", back_populates="videos")
    likers = relationship("Users", secondary=video_likes, back_populates="liked_videos")
    comments = relationship(
        "Comment",
        back_populates="video",
        order_by="Comment.created_at",
        cascade="all, delete-orphan",
    )
    interactions = relationship("Interaction", back_populates="video", cascade="all, delete-orphan")
    tips = relationship("Tip", back_populates="video")
