from __future__ import annotations

from datetime import datetime

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from candor.core.config import get_settings
from candor.core.errors import NotFoundError, ValidationFailedError
from candor.models.issue import Issue, IssueSeverity, IssueStatus, IssueUpdate, UpdateType
from candor.models.profile import Profile
from candor.models.reference import Department, IssueCategory
from candor.schemas.issue import IssueCreate, IssuePatch, IssueUpdateCreate
from candor.services.lifecycle import change_status, sync_resolved_at
from candor.services.policy import ANONYMOUS, Capabilities
from candor.services.tokens import AnonymousTokenService, generate_anonymous_token


class IssueService:
    def __init__(self, session: Session) -> None:
        self.session = session
        self.settings = get_settings()
        self.tokens = AnonymousTokenService(session=session)

    # reference data

    def list_categories(self) -> list[IssueCategory]:
        return list(self.session.scalars(select(IssueCategory).order_by(IssueCategory.name)))

    def list_departments(self) -> list[Department]:
        return list(self.session.scalars(select(Department).order_by(Department.name)))

    # reads

    def list_issues(
        self,
        *,
        status: IssueStatus | None = None,
        severity: IssueSeverity | None = None,
        category_id: str | None = None,
        created_after: datetime | None = None,
    ) -> list[Issue]:
        stmt = select(Issue).order_by(Issue.created_at.desc())
        if status is not None:
            stmt = stmt.where(Issue.status == status.value)
        if severity is not None:
            stmt = stmt.where(Issue.severity == severity.value)
        if category_id:
            stmt = stmt.where(Issue.category_id == category_id)
        if created_after is not None:
            stmt = stmt.where(Issue.created_at >= created_after)
        return list(self.session.scalars(stmt).unique())

    def list_reported_by(self, *, reporter_id: str) -> list[Issue]:
        stmt = select(Issue).where(Issue.reporter_id == reporter_id).order_by(Issue.created_at.desc())
        return list(self.session.scalars(stmt).unique())

    def get_issue(self, issue_id: str) -> Issue:
        issue = self.session.get(Issue, issue_id)
        if issue is None:
            raise NotFoundError(f"Issue {issue_id} not found")
        return issue

    def find_by_token(self, token: str) -> Issue | None:
        token = (token or "").strip()
        if not token:
            return None
        stmt = select(Issue).where(Issue.anonymous_token == token)
        return self.session.scalars(stmt).unique().first()

    def visible_updates(self, issue: Issue, capabilities: Capabilities = ANONYMOUS) -> list[IssueUpdate]:
        if capabilities.can_view_private_updates:
            return list(issue.updates)
        return [update for update in issue.updates if update.is_public]

    # writes

    def create_issue(self, payload: IssueCreate, *, reporter: Profile | None = None) -> tuple[Issue, str]:
        self._check_references(category_id=payload.category_id, department_id=payload.department_id)

        anonymous = payload.anonymous or reporter is None
        token = generate_anonymous_token()
        issue = Issue(
            title=payload.title,
            description=payload.description,
            category_id=payload.category_id,
            department_id=payload.department_id,
            severity=payload.severity.value,
            status=IssueStatus.OPEN.value,
            anonymous_token=token,
            reporter_id=None if anonymous else reporter.user_id,
            location=payload.location,
            attachments=list(payload.attachments),
            metadata_=dict(payload.metadata),
        )
        self.session.add(issue)
        self.session.flush()

        if anonymous:
            self.tokens.issue_token(issue=issue, ttl_days=self.settings.anonymous_token_ttl_days)

        self.session.refresh(issue)
        logger.info(
            "Created issue id={issue_id} severity={severity} anonymous={anonymous}",
            issue_id=issue.id,
            severity=issue.severity,
            anonymous=anonymous,
        )
        return issue, token

    def update_issue(self, issue_id: str, patch: IssuePatch, *, capabilities: Capabilities) -> Issue:
        capabilities.require("can_update_issues")
        issue = self.get_issue(issue_id)
        changes = patch.model_dump(exclude_unset=True)

        self._check_references(
            category_id=changes.get("category_id"),
            department_id=changes.get("department_id"),
        )

        for field in ("title", "description", "category_id", "department_id", "location", "attachments"):
            if field in changes:
                setattr(issue, field, changes[field])
        if "severity" in changes and changes["severity"] is not None:
            issue.severity = IssueSeverity(changes["severity"]).value
        if "metadata" in changes:
            issue.metadata_ = changes["metadata"] or {}

        if "assigned_to" in changes:
            self._assign(issue, changes["assigned_to"], capabilities)

        if changes.get("status") is not None:
            change_status(
                issue,
                changes["status"],
                actor_id=capabilities.user_id,
                note=patch.note,
                is_public=patch.note_is_public,
            )
        else:
            sync_resolved_at(issue)
            if patch.note:
                issue.updates.append(
                    IssueUpdate(
                        update_type=UpdateType.COMMENT.value,
                        content=patch.note,
                        created_by=capabilities.user_id,
                        is_public=patch.note_is_public,
                    )
                )

        self.session.flush()
        self.session.refresh(issue)
        logger.info("Updated issue id={issue_id} fields={fields}", issue_id=issue.id, fields=sorted(changes))
        return issue

    def add_update(self, issue_id: str, payload: IssueUpdateCreate, *, capabilities: Capabilities) -> IssueUpdate:
        capabilities.require("can_post_updates")
        issue = self.get_issue(issue_id)
        if payload.update_type in (UpdateType.STATUS_CHANGE, UpdateType.RESOLUTION):
            raise ValidationFailedError("Status changes are recorded by updating the issue status")

        update = IssueUpdate(
            update_type=payload.update_type.value,
            content=payload.content,
            created_by=capabilities.user_id,
            is_public=payload.is_public,
        )
        issue.updates.append(update)
        self.session.flush()
        logger.info("Added {kind} update to issue id={issue_id}", kind=update.update_type, issue_id=issue.id)
        return update

    def _assign(self, issue: Issue, user_id: str | None, capabilities: Capabilities) -> None:
        capabilities.require("can_assign")
        if user_id == issue.assigned_to:
            return
        if user_id is not None:
            assignee = self.session.scalars(select(Profile).where(Profile.user_id == user_id)).first()
            if assignee is None:
                raise ValidationFailedError(f"Unknown assignee {user_id}")
            content = f"Assigned to {assignee.display_name or assignee.email}."
        else:
            content = "Assignment cleared."

        issue.assigned_to = user_id
        issue.updates.append(
            IssueUpdate(
                update_type=UpdateType.ASSIGNMENT.value,
                content=content,
                created_by=capabilities.user_id,
                is_public=False,
            )
        )

    def _check_references(self, *, category_id: str | None, department_id: str | None) -> None:
        if category_id and self.session.get(IssueCategory, category_id) is None:
            raise ValidationFailedError(f"Unknown category {category_id}")
        if department_id and self.session.get(Department, department_id) is None:
            raise ValidationFailedError(f"Unknown department {department_id}")
