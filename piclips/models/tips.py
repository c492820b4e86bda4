import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Uuid, func
from sqlalchemy.orm import relationship

from piclips.db.database import Base, utcnow


class Tip(Base):
    __tablename__ = "tips"
    __table_args__ = (
        CheckConstraint("amount >= 1", name="ck_tips_amount_positive"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    sender_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    receiver_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    # the ledger outlives the video it was sent on
    video_id = Column(Uuid, ForeignKey("videos.id", ondelete="SET NULL"), nullable=True, index=True)

    amount = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False, index=True)

    sender = relationship("Users", foreign_keys=[sender_id])
    receiver = relationship("Users", foreign_keys=[receiver_id])
    video = relationship("Video", back_populates="tips")
