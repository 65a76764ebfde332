"""Schedule model: a user's recurring summary job. Read-only to the pipeline."""

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from nemory.utils import now_utc
from .base import Base


class Schedule(Base):
    __tablename__ = "schedules"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)

    # Recurrence
    frequency: Mapped[str] = mapped_column(String(16), default="daily")
    days_of_week: Mapped[list | None] = mapped_column(JSON, nullable=True)
    day_of_month: Mapped[int | None] = mapped_column(Integer, nullable=True)
    time: Mapped[str] = mapped_column(String(5), default="09:00")  # informational only
    timezone: Mapped[str] = mapped_column(String(64), default="UTC")

    # Summary options
    summary_style: Mapped[str] = mapped_column(String(32), default="executive")
    summary_length: Mapped[str] = mapped_column(String(16), default="medium")
    focus_areas: Mapped[list | None] = mapped_column(JSON, nullable=True)
    content_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    include_action_items: Mapped[bool] = mapped_column(Boolean, default=True)
    include_priority: Mapped[bool] = mapped_column(Boolean, default=False)

    # Delivery
    telegram_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    telegram_chat_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    email_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    email_address: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=now_utc)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)
