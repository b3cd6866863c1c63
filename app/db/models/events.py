from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Index, String, Text, text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class Event(Base):
    __tablename__ = "events"
    __table_args__ = (
        CheckConstraint(
            "rarity IN ('comum','raro','epico','lendario')",
            name="ck_events_rarity",
        ),
        CheckConstraint(
            "redemption_code ~ '^[A-Z0-9]{3}-[A-Z0-9]{3}$'",
            name="ck_events_redemption_code_shape",
        ),
        Index("idx_events_season_event_date", "season_id", "event_date"),
        Index("idx_events_redemption_deadline", "redemption_deadline"),
    )

    id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
    )
    season_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("seasons.id", ondelete="CASCADE"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(160), nullable=False)
    theme: Mapped[str | None] = mapped_column(Text, nullable=True)
    preacher: Mapped[str | None] = mapped_column(Text, nullable=True)
    event_date: Mapped[date] = mapped_column(Date, nullable=False)
    redemption_deadline: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    card_image_url: Mapped[str] = mapped_column(Text, nullable=False)
    rarity: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        server_default=text("'comum'"),
    )
    redemption_code: Mapped[str] = mapped_column(String(7), unique=True, nullable=False)
    qr_code_data: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
