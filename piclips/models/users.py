import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Table, Text, Uuid, func
from sqlalchemy.orm import relationship

from piclips.db.database import Base, utcnow

DEFAULT_AVATAR = "/placeholder.svg"


user_follows = Table(
    "user_follows",
    Base.metadata,
    Column("follower_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("followed_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", DateTime(timezone=True), server_default=func.now(), nullable=False),
)


class Users(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("token_balance >= 0", name="ck_users_token_balance_non_negative"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    uid = Column(String, unique=True, index=True, nullable=False)
    username = Column(String, nullable=False, index=True)
    display_name = Column(String, nullable=False)
    avatar = Column(String, nullable=False, default=DEFAULT_AVATAR)
    bio = Column(Text, nullable=True)
    instagram = Column(String, nullable=True)
    youtube = Column(String, nullable=True)
    # searchable by the hashtag search type, nothing writes it yet
    hashtags = Column(String, nullable=True)

    token_balance = Column(Integer, nullable=False, default=0)
    likes_count = Column(Integer, nullable=False, default=0)
    uploaded_videos_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    videos = relationship("Video", back_populates="owner")
    liked_videos = relationship("Video", secondary="video_likes", back_populates="likers")
    followers = relationship(
        "Users",
        secondary=user_follows,
        primaryjoin=id == user_follows.c.followed_id,
        secondaryjoin=id == user_follows.c.follower_id,
        back_populates="following",
    )
    following = relationship(
        "Users",
        secondary=user_follows,
        primaryjoin=id == user_follows.c.follower_id,
        secondaryjoin=id == user_follows.c.followed_id,
        back_populates="followers",
    )
