from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from candor.models.issue import IssueSeverity, IssueStatus, UpdateType
from candor.schemas.profile import ProfileSummary
from candor.schemas.reference import CategoryRead, DepartmentRead

NON_NULLABLE_PATCH_FIELDS = ("title", "description", "category_id", "severity", "status", "attachments")


def _strip_required(value: str) -> str:
    if not value or not value.strip():
        raise ValueError("must not be blank")
    return value.strip()


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


class IssueCreate(BaseModel):
    title: str
    description: str
    category_id: str
    severity: IssueSeverity
    department_id: str | None = None
    location: str | None = None
    attachments: list[Any] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    anonymous: bool = True

    @field_validator("title", "description", "category_id")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        return _strip_required(value)

    @field_validator("department_id", "location")
    @classmethod
    def _optional(cls, value: str | None) -> str | None:
        return _blank_to_none(value)


class IssuePatch(BaseModel):
    # anonymous_token and reporter_id are deliberately absent: they never change.
    model_config = ConfigDict(extra="forbid")

    title: str | None = None
    description: str | None = None
    category_id: str | None = None
    department_id: str | None = None
    severity: IssueSeverity | None = None
    status: IssueStatus | None = None
    assigned_to: str | None = None
    location: str | None = None
    attachments: list[Any] | None = None
    metadata: dict[str, Any] | None = None
    note: str | None = Field(default=None, description="Text recorded on the audit update")
    note_is_public: bool = True

    @field_validator("title", "description", "category_id")
    @classmethod
    def _not_blank(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _strip_required(value)

    @model_validator(mode="after")
    def _no_null_required_fields(self) -> IssuePatch:
        # Omitting a field leaves it alone; sending null for a required one is an error.
        cleared = sorted(
            name for name in NON_NULLABLE_PATCH_FIELDS if name in self.model_fields_set and getattr(self, name) is None
        )
        if cleared:
            raise ValueError(f"{', '.join(cleared)} cannot be null")
        return self


class IssueUpdateCreate(BaseModel):
    update_type: UpdateType = UpdateType.COMMENT
    content: str
    is_public: bool = True

    @field_validator("content")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        return _strip_required(value)


class IssueUpdateRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    issue_id: str
    update_type: UpdateType
    content: str
    old_status: IssueStatus | None = None
    new_status: IssueStatus | None = None
    created_by: str | None = None
    is_public: bool
    created_at: datetime


class IssueRead(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    title: str
    description: str
    category_id: str | None = None
    department_id: str | None = None
    severity: IssueSeverity
    status: IssueStatus
    reporter_id: str | None = None
    assigned_to: str | None = None
    location: str | None = None
    attachments: list[Any] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("metadata_", "metadata"),
    )
    created_at: datetime
    updated_at: datetime
    resolved_at: datetime | None = None

    category: CategoryRead | None = None
    department: DepartmentRead | None = None
    assigned_user: ProfileSummary | None = None

    @field_validator("attachments", mode="before")
    @classmethod
    def _list_or_empty(cls, value: Any) -> Any:
        return value if isinstance(value, list) else []

    @field_validator("metadata", mode="before")
    @classmethod
    def _dict_or_empty(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else {}


class TrackedIssue(IssueRead):
    updates: list[IssueUpdateRead] = Field(default_factory=list)


class CreateIssueResponse(BaseModel):
    issue: IssueRead
    token: str
