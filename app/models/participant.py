import datetime as dt
import uuid

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


class Participant(Base):
    __tablename__ = "participants"
    __table_args__ = (UniqueConstraint("match_id", "user_id", name="uq_match_user"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    match_id: Mapped[str] = mapped_column(
        ForeignKey("matches.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    user_name: Mapped[str] = mapped_column(String(500), default="", nullable=False)

    position: Mapped[int] = mapped_column(Integer, nullable=False)
    is_starter: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    joined_at: Mapped[dt.datetime] = mapped_column(DateTime, nullable=False)

    match = relationship("Match", back_populates="participants")
