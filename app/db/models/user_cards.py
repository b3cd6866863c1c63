from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class UserCard(Base):
    __tablename__ = "user_cards"
    __table_args__ = (
        CheckConstraint(
            "variant IN ('comum','edicao_diamante','holografica','reliquia')",
            name="ck_user_cards_variant",
        ),
        UniqueConstraint("user_id", "event_id", name="uq_user_cards_user_event"),
        Index("idx_user_cards_event", "event_id"),
        Index("idx_user_cards_user_redeemed_at", "user_id", "redeemed_at"),
    )

    id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
    )
    user_id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), nullable=False)
    event_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
    )
    variant: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        server_default=text("'comum'"),
    )
    redeemed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
