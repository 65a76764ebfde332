"""NotionIntegration model: one connected workspace per user."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from nemory.utils import now_utc
from .base import Base


class NotionIntegration(Base):
    __tablename__ = "notion_integrations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    workspace_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    access_token: Mapped[str | None] = mapped_column(Text, nullable=True)  # Fernet ciphertext
    connected_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=now_utc)
