from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from loguru import logger
from pydantic import BaseModel

from candor.client.api import ApiError, CandorAPI, ClientError
from candor.client.notifications import Notifier
from candor.client.vault import TokenVault
from candor.core.config import get_settings
from candor.core.errors import PermissionDeniedError
from candor.schemas import CategoryRead, DepartmentRead, IssueCreate, IssuePatch, IssueRead, TrackedIssue
from candor.utils.time import ensure_utc


class UpdateCapability(Protocol):
    can_update_issues: bool


@dataclass(frozen=True)
class CreatedReport:
    issue: IssueRead
    token: str


def _as_payload(value: BaseModel | dict[str, Any], *, exclude_unset: bool = False) -> dict[str, Any]:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", exclude_unset=exclude_unset)
    return dict(value)


class IssueStore:
    """
    Client-side access to issues and reference data.

    Issues are cached by id and patched one record at a time after mutations.
    Remote failures are logged and turned into notifications here; pages only
    see a result, ``None``, or the re-raised error for writes.
    """

    def __init__(
        self,
        api: CandorAPI,
        notifier: Notifier | None = None,
        vault: TokenVault | None = None,
    ) -> None:
        self.api = api
        self.notifier = notifier if notifier is not None else Notifier()
        self.vault = vault if vault is not None else TokenVault()
        self._issues: dict[str, IssueRead] = {}
        self.categories: list[CategoryRead] = []
        self.departments: list[DepartmentRead] = []
        self.loading = False

    @property
    def issues(self) -> list[IssueRead]:
        return sorted(self._issues.values(), key=lambda issue: ensure_utc(issue.created_at), reverse=True)

    def get(self, issue_id: str) -> IssueRead | None:
        return self._issues.get(issue_id)

    def load(self) -> None:
        self.loading = True
        try:
            self.fetch_issues()
            self.fetch_categories()
            self.fetch_departments()
        finally:
            self.loading = False

    def fetch_issues(self) -> list[IssueRead]:
        try:
            rows = [IssueRead.model_validate(row) for row in self.api.list_issues()]
        except ClientError as exc:
            logger.error("Error fetching issues: {error}", error=exc.message)
            self.notifier.error("Error loading issues", exc.message)
            return self.issues

        self._issues = {issue.id: issue for issue in rows}
        return self.issues

    refetch = fetch_issues

    def fetch_categories(self) -> list[CategoryRead]:
        try:
            self.categories = [CategoryRead.model_validate(row) for row in self.api.categories()]
        except ClientError as exc:
            logger.error("Error fetching categories: {error}", error=exc.message)
        return self.categories

    def fetch_departments(self) -> list[DepartmentRead]:
        try:
            self.departments = [DepartmentRead.model_validate(row) for row in self.api.departments()]
        except ClientError as exc:
            logger.error("Error fetching departments: {error}", error=exc.message)
        return self.departments

    def create_issue(self, data: IssueCreate | dict[str, Any]) -> CreatedReport:
        try:
            payload = IssueCreate.model_validate(_as_payload(data))
            body = self.api.create_issue(payload.model_dump(mode="json"))
            created = CreatedReport(issue=IssueRead.model_validate(body["issue"]), token=body["token"])
        except (ClientError, ValueError) as exc:
            message = exc.message if isinstance(exc, ClientError) else str(exc)
            logger.error("Error creating issue: {error}", error=message)
            self.notifier.error("Error reporting issue", message)
            raise

        self._issues[created.issue.id] = created.issue
        try:
            self.vault.save(created.issue.id, created.token)
        except OSError as exc:
            # The issue exists server-side; the token must still reach the page.
            logger.error(
                "Error saving tracking token for issue {issue_id}: {error}", issue_id=created.issue.id, error=exc
            )
            self.notifier.error(
                "Could not save tracking token",
                f"Copy your tracking token now, it cannot be recovered later: {created.token}",
            )
            return created

        self.notifier.notify(
            "Issue reported successfully",
            f"Your anonymous tracking ID is: {created.token[-8:]}",
        )
        return created

    def update_issue(
        self,
        issue_id: str,
        patch: IssuePatch | dict[str, Any],
        capabilities: UpdateCapability,
    ) -> IssueRead:
        if not capabilities.can_update_issues:
            self.notifier.error("Error updating issue", "Your role cannot update issues.")
            raise PermissionDeniedError("Your role cannot update issues")

        try:
            body = self.api.update_issue(issue_id, _as_payload(patch, exclude_unset=True))
            updated = IssueRead.model_validate(body)
        except ClientError as exc:
            logger.error("Error updating issue {issue_id}: {error}", issue_id=issue_id, error=exc.message)
            self.notifier.error("Error updating issue", exc.message)
            raise

        self._issues[issue_id] = updated
        self.notifier.notify("Issue updated successfully")
        return updated

    def track_issue_by_token(self, token: str) -> TrackedIssue | None:
        token = (token or "").strip()
        if not token:
            return None
        try:
            return TrackedIssue.model_validate(self.api.track(token))
        except ApiError as exc:
            if exc.is_not_found:
                return None
            logger.error("Error tracking issue: {error}", error=exc.message)
            self.notifier.error("Error tracking issue", "Please try again or contact support if the problem persists.")
            raise
        except ClientError as exc:
            logger.error("Error tracking issue: {error}", error=exc.message)
            self.notifier.error("Error tracking issue", "Please try again or contact support if the problem persists.")
            raise


def build_store(notifier: Notifier | None = None) -> IssueStore:
    """Store wired to the configured deployment URL, API key and token vault."""
    settings = get_settings()
    return IssueStore(
        CandorAPI(settings.public_url, settings.public_api_key),
        notifier=notifier,
        vault=TokenVault(settings.token_vault_path),
    )
