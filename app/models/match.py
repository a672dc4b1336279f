import datetime as dt
import uuid

from sqlalchemy import CheckConstraint, Date, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


class Match(Base):
    __tablename__ = "matches"
    __table_args__ = (
        CheckConstraint("max_players >= 2", name="ck_match_max_players"),
        CheckConstraint("price_per_person >= 0", name="ck_match_price"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    sport: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    location: Mapped[str] = mapped_column(String(500), nullable=False)  # texto libre, puede llevar coords

    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    time: Mapped[str] = mapped_column(String(8), nullable=False)  # HH:MM hora local

    max_players: Mapped[int] = mapped_column(Integer, default=10, nullable=False)

    creator_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    creator_name: Mapped[str] = mapped_column(String(500), nullable=False)
    captain_name: Mapped[str] = mapped_column(String(500), default="", nullable=False)

    price_per_person: Mapped[int] = mapped_column(Integer, default=0, nullable=False)  # centimos
    invite_code: Mapped[str] = mapped_column(String(8), unique=True, nullable=False, index=True)

    # contador de posiciones ya asignadas; nunca baja (las salidas no compactan)
    next_position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime, nullable=False)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime, nullable=False)

    participants = relationship(
        "Participant",
        back_populates="match",
        order_by="Participant.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
