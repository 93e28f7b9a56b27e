from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, Boolean, CheckConstraint, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, CreatedAtMixin, TimestampMixin, new_id

if TYPE_CHECKING:
    from .profile import Profile
    from .reference import Department, IssueCategory
    from .token import AnonymousToken


class IssueStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"

    @property
    def is_done(self) -> bool:
        return self in (IssueStatus.RESOLVED, IssueStatus.CLOSED)


class IssueSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return list(IssueSeverity).index(self)

    # str would otherwise compare these alphabetically
    def __lt__(self, other: object) -> bool:
        if not isinstance(other, IssueSeverity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, IssueSeverity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, IssueSeverity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, IssueSeverity):
            return NotImplemented
        return self.rank >= other.rank


class UpdateType(str, Enum):
    STATUS_CHANGE = "status_change"
    COMMENT = "comment"
    ASSIGNMENT = "assignment"
    RESOLUTION = "resolution"


def _in_check(column: str, enum: type[Enum]) -> str:
    values = ", ".join(f"'{member.value}'" for member in enum)
    return f"{column} IN ({values})"


class Issue(TimestampMixin, Base):
    __tablename__ = "issues"
    __table_args__ = (
        CheckConstraint(_in_check("severity", IssueSeverity), name="severity"),
        CheckConstraint(_in_check("status", IssueStatus), name="status"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category_id: Mapped[str | None] = mapped_column(ForeignKey("issue_categories.id"), nullable=True)
    department_id: Mapped[str | None] = mapped_column(ForeignKey("departments.id"), nullable=True)
    severity: Mapped[str] = mapped_column(String(16), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=IssueStatus.OPEN.value)
    anonymous_token: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    reporter_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    assigned_to: Mapped[str | None] = mapped_column(ForeignKey("profiles.user_id"), nullable=True)
    location: Mapped[str | None] = mapped_column(String(256), nullable=True)
    attachments: Mapped[list[Any]] = mapped_column(JSON, nullable=False, default=list)
    metadata_: Mapped[dict[str, Any]] = mapped_column("metadata", JSON, nullable=False, default=dict)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    category: Mapped[IssueCategory | None] = relationship(lazy="joined")
    department: Mapped[Department | None] = relationship(lazy="joined")
    assigned_user: Mapped[Profile | None] = relationship(lazy="joined")
    updates: Mapped[list[IssueUpdate]] = relationship(
        back_populates="issue",
        cascade="all, delete-orphan",
        order_by="IssueUpdate.created_at",
    )
    token_record: Mapped[AnonymousToken | None] = relationship(
        back_populates="issue",
        cascade="all, delete-orphan",
        uselist=False,
    )


class IssueUpdate(CreatedAtMixin, Base):
    __tablename__ = "issue_updates"
    __table_args__ = (CheckConstraint(_in_check("update_type", UpdateType), name="update_type"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    issue_id: Mapped[str] = mapped_column(ForeignKey("issues.id", ondelete="CASCADE"), nullable=False)
    update_type: Mapped[str] = mapped_column(String(32), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    old_status: Mapped[str | None] = mapped_column(String(16), nullable=True)
    new_status: Mapped[str | None] = mapped_column(String(16), nullable=True)
    created_by: Mapped[str | None] = mapped_column(ForeignKey("profiles.user_id"), nullable=True)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    issue: Mapped[Issue] = relationship(back_populates="updates")
