from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from candor.models.profile import UserRole
from candor.schemas.reference import DepartmentRead

SELF_SERVICE_ROLES = {UserRole.EMPLOYEE, UserRole.MANAGER, UserRole.HR}


class SignUpMetadata(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    display_name: str | None = None
    role: UserRole = UserRole.EMPLOYEE
    company: str | None = None
    job_title: str | None = None

    @field_validator("role")
    @classmethod
    def _self_service_role(cls, value: UserRole) -> UserRole:
        if value not in SELF_SERVICE_ROLES:
            raise ValueError(f"role '{value.value}' cannot be chosen at sign-up")
        return value


class SignUpPayload(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    metadata: SignUpMetadata = Field(default_factory=SignUpMetadata)


class SignInPayload(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class ProfileSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    display_name: str | None = None
    role: str
    job_title: str | None = None


class ProfileRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    email: str
    role: str
    display_name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    department_id: str | None = None
    manager_id: str | None = None
    company: str | None = None
    job_title: str | None = None
    phone: str | None = None
    avatar_url: str | None = None
    created_at: datetime
    updated_at: datetime
    department: DepartmentRead | None = None


class ProfileUpdate(BaseModel):
    """Fields a member may edit on their own profile."""

    model_config = ConfigDict(extra="forbid")

    display_name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    company: str | None = None
    job_title: str | None = None
    avatar_url: str | None = None


class SessionResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    profile: ProfileRead


class CapabilitiesRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str | None = None
    role: str | None = None
    can_update_issues: bool = False
    can_post_updates: bool = False
    can_view_private_updates: bool = False
    can_assign: bool = False
