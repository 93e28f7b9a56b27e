from __future__ import annotations

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, CreatedAtMixin, new_id

DEFAULT_CATEGORY_COLOR = "#6366f1"
DEFAULT_CATEGORY_ICON = "AlertCircle"


class Department(CreatedAtMixin, Base):
    __tablename__ = "departments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class IssueCategory(CreatedAtMixin, Base):
    __tablename__ = "issue_categories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    color: Mapped[str] = mapped_column(String(16), nullable=False, default=DEFAULT_CATEGORY_COLOR)
    icon: Mapped[str] = mapped_column(String(64), nullable=False, default=DEFAULT_CATEGORY_ICON)
