"""
Client-side form models.

Each form validates before anything is sent to the service. ``validate_form``
returns the parsed model or a field -> message mapping suitable for inline
display.
"""

from __future__ import annotations

from typing import Any, Literal, TypeVar

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, ValidationError, ValidationInfo, field_validator

from candor.models.issue import IssueSeverity

FormT = TypeVar("FormT", bound=BaseModel)


def validate_form(form: type[FormT], data: dict[str, Any]) -> tuple[FormT | None, dict[str, str]]:
    try:
        return form.model_validate(data), {}
    except ValidationError as exc:
        errors: dict[str, str] = {}
        for error in exc.errors():
            field = ".".join(str(part) for part in error["loc"]) or "__all__"
            message = error["msg"].removeprefix("Value error, ")
            errors.setdefault(field, message)
        return None, errors


def _min_length(value: str | None, length: int, message: str) -> str:
    value = (value or "").strip()
    if len(value) < length:
        raise ValueError(message)
    return value


def _optional(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


def _email(value: str) -> str:
    try:
        return validate_email(value or "", check_deliverability=False).normalized
    except EmailNotValidError as exc:
        raise ValueError("Invalid email address") from exc


class _Form(BaseModel):
    model_config = ConfigDict(validate_default=True)


# report wizard


class ReportDetailsStep(_Form):
    title: str = ""
    description: str = ""

    @field_validator("title")
    @classmethod
    def _title(cls, value: str) -> str:
        return _min_length(value, 5, "Title must be at least 5 characters")

    @field_validator("description")
    @classmethod
    def _description(cls, value: str) -> str:
        return _min_length(value, 20, "Please provide more details (minimum 20 characters)")


class ReportClassificationStep(_Form):
    category_id: str = ""
    department_id: str | None = None
    severity: IssueSeverity = IssueSeverity.MEDIUM
    location: str | None = None

    @field_validator("category_id")
    @classmethod
    def _category(cls, value: str) -> str:
        return _min_length(value, 1, "Please select a category")

    @field_validator("department_id", "location")
    @classmethod
    def _blank(cls, value: str | None) -> str | None:
        return _optional(value)


class ReportForm(ReportDetailsStep, ReportClassificationStep):
    anonymous: bool = False

    def to_issue_payload(self, submitted_at: str) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "category_id": self.category_id,
            "department_id": self.department_id,
            "severity": self.severity.value,
            "location": self.location,
            "anonymous": self.anonymous,
            "metadata": {
                "submitted_via": "web_form",
                "anonymous_submission": self.anonymous,
                "timestamp": submitted_at,
            },
        }


# tracking


class TrackForm(_Form):
    token: str = ""

    @field_validator("token")
    @classmethod
    def _token(cls, value: str) -> str:
        return _min_length(value, 1, "Please enter your tracking token")


# auth


class SignInForm(_Form):
    email: str = ""
    password: str = ""

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        return _email(value)

    @field_validator("password")
    @classmethod
    def _password(cls, value: str) -> str:
        if len(value or "") < 6:
            raise ValueError("Password must be at least 6 characters")
        return value


class SignUpForm(SignInForm):
    confirm_password: str = ""
    first_name: str = ""
    last_name: str = ""
    role: Literal["employee", "manager", "hr"] | None = None
    company: str = ""
    job_title: str = ""

    @field_validator("first_name")
    @classmethod
    def _first_name(cls, value: str) -> str:
        return _min_length(value, 1, "First name is required")

    @field_validator("last_name")
    @classmethod
    def _last_name(cls, value: str) -> str:
        return _min_length(value, 1, "Last name is required")

    @field_validator("company")
    @classmethod
    def _company(cls, value: str) -> str:
        return _min_length(value, 1, "Company name is required")

    @field_validator("job_title")
    @classmethod
    def _job_title(cls, value: str) -> str:
        return _min_length(value, 1, "Job title is required")

    @field_validator("role")
    @classmethod
    def _role(cls, value: str | None) -> str:
        if not value:
            raise ValueError("Please select your role")
        return value

    @field_validator("confirm_password")
    @classmethod
    def _passwords_match(cls, value: str, info: ValidationInfo) -> str:
        if value != info.data.get("password"):
            raise ValueError("Passwords don't match")
        return value

    def to_signup_payload(self) -> dict[str, Any]:
        return {
            "email": self.email,
            "password": self.password,
            "metadata": {
                "first_name": self.first_name,
                "last_name": self.last_name,
                "display_name": f"{self.first_name} {self.last_name}",
                "role": self.role,
                "company": self.company,
                "job_title": self.job_title,
            },
        }


# profile


class ProfileForm(_Form):
    display_name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    company: str | None = None
    job_title: str | None = None

    @field_validator("*")
    @classmethod
    def _blank(cls, value: str | None) -> str | None:
        return _optional(value)
