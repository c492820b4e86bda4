import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text, Uuid, func
from sqlalchemy.orm import relationship

from piclips.db.database import Base, utcnow


class Comment(Base):
    __tablename__ = "comments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    content = Column(Text, nullable=False)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    video_id = Column(Uuid, ForeignKey("videos.id", ondelete="CASCADE"), nullable=False, index=True)
    # backs the replies list; no endpoint creates replies yet
    parent_id = Column(Uuid, ForeignKey("comments.id", ondelete="CASCADE"), nullable=True)

    likes = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False, index=True)

    author = relationship("Users")
    video = relationship("Video", back_populates="comments")
    replies = relationship("Comment")
