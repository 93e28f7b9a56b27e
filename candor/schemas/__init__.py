from .reference import CategoryRead, DepartmentRead
from .issue import (
    CreateIssueResponse,
    IssueCreate,
    IssuePatch,
    IssueRead,
    IssueUpdateCreate,
    IssueUpdateRead,
    TrackedIssue,
)
from .profile import (
    CapabilitiesRead,
    ProfileRead,
    ProfileSummary,
    ProfileUpdate,
    SessionResponse,
    SignInPayload,
    SignUpMetadata,
    SignUpPayload,
)

__all__ = [
    "CategoryRead",
    "DepartmentRead",
    "CreateIssueResponse",
    "IssueCreate",
    "IssuePatch",
    "IssueRead",
    "IssueUpdateCreate",
    "IssueUpdateRead",
    "TrackedIssue",
    "CapabilitiesRead",
    "ProfileRead",
    "ProfileSummary",
    "ProfileUpdate",
    "SessionResponse",
    "SignInPayload",
    "SignUpMetadata",
    "SignUpPayload",
]
