from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from loguru import logger
from sqlalchemy.orm import Session

from candor.api.deps import get_capabilities, get_current_profile, get_optional_profile
from candor.core.config import get_settings
from candor.core.errors import NotFoundError, ValidationFailedError
from candor.models.issue import IssueSeverity, IssueStatus
from candor.models.profile import Profile
from candor.schemas import (
    CategoryRead,
    CreateIssueResponse,
    DepartmentRead,
    IssueCreate,
    IssuePatch,
    IssueRead,
    IssueUpdateCreate,
    IssueUpdateRead,
    TrackedIssue,
)
from candor.services.db import get_db
from candor.services.issues import IssueService
from candor.services.policy import Capabilities
from candor.utils.time import parse_human_since

router = APIRouter()

PAGES = ["/", "/auth", "/dashboard", "/report", "/track", "/profile"]


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/")
async def landing() -> dict[str, object]:
    return {"name": "Candor", "tagline": "Speak up safely. Track anonymously.", "pages": PAGES}


@router.get("/departments", response_model=list[DepartmentRead])
def list_departments(session: Session = Depends(get_db)):
    return IssueService(session=session).list_departments()


@router.get("/categories", response_model=list[CategoryRead])
def list_categories(session: Session = Depends(get_db)):
    return IssueService(session=session).list_categories()


@router.get("/issues", response_model=list[IssueRead])
def list_issues(
    status_filter: IssueStatus | None = Query(default=None, alias="status"),
    severity: IssueSeverity | None = None,
    category_id: str | None = None,
    since: str | None = Query(default=None, description='Human phrase such as "7 days ago"'),
    session: Session = Depends(get_db),
):
    created_after = None
    if since:
        created_after = parse_human_since(since, get_settings().timezone or None)
        if created_after is None:
            raise ValidationFailedError(f"Could not understand date '{since}'")

    return IssueService(session=session).list_issues(
        status=status_filter,
        severity=severity,
        category_id=category_id,
        created_after=created_after,
    )


@router.get("/issues/mine", response_model=list[IssueRead])
def list_my_issues(profile: Profile = Depends(get_current_profile), session: Session = Depends(get_db)):
    return IssueService(session=session).list_reported_by(reporter_id=profile.user_id)


@router.post("/issues", response_model=CreateIssueResponse, status_code=status.HTTP_201_CREATED)
def create_issue(
    payload: IssueCreate,
    reporter: Profile | None = Depends(get_optional_profile),
    session: Session = Depends(get_db),
):
    issue, token = IssueService(session=session).create_issue(payload, reporter=reporter)
    return CreateIssueResponse(issue=IssueRead.model_validate(issue), token=token)


@router.get("/issues/{issue_id}", response_model=IssueRead)
def get_issue(issue_id: str, session: Session = Depends(get_db)):
    return IssueService(session=session).get_issue(issue_id)


@router.patch("/issues/{issue_id}", response_model=IssueRead)
def update_issue(
    issue_id: str,
    patch: IssuePatch,
    capabilities: Capabilities = Depends(get_capabilities),
    session: Session = Depends(get_db),
):
    return IssueService(session=session).update_issue(issue_id, patch, capabilities=capabilities)


@router.get("/issues/{issue_id}/updates", response_model=list[IssueUpdateRead])
def list_issue_updates(
    issue_id: str,
    capabilities: Capabilities = Depends(get_capabilities),
    session: Session = Depends(get_db),
):
    service = IssueService(session=session)
    return service.visible_updates(service.get_issue(issue_id), capabilities)


@router.post("/issues/{issue_id}/updates", response_model=IssueUpdateRead, status_code=status.HTTP_201_CREATED)
def add_issue_update(
    issue_id: str,
    payload: IssueUpdateCreate,
    capabilities: Capabilities = Depends(get_capabilities),
    session: Session = Depends(get_db),
):
    return IssueService(session=session).add_update(issue_id, payload, capabilities=capabilities)


@router.get("/track/{token}", response_model=TrackedIssue)
def track_issue(token: str, session: Session = Depends(get_db)):
    service = IssueService(session=session)
    issue = service.find_by_token(token)
    if issue is None:
        logger.info("Tracking lookup found no issue")
        raise NotFoundError("No issue matches this tracking token")

    summary = IssueRead.model_validate(issue)
    updates = [IssueUpdateRead.model_validate(update) for update in service.visible_updates(issue)]
    return TrackedIssue(**summary.model_dump(), updates=updates)
