from __future__ import annotations

from datetime import datetime

from loguru import logger

from candor.core.errors import ValidationFailedError
from candor.models.issue import Issue, IssueStatus, IssueUpdate, UpdateType
from candor.utils.time import utcnow

STATUS_FLOW: tuple[IssueStatus, ...] = (
    IssueStatus.OPEN,
    IssueStatus.IN_PROGRESS,
    IssueStatus.RESOLVED,
    IssueStatus.CLOSED,
)


def parse_status(value: str | IssueStatus) -> IssueStatus:
    try:
        return IssueStatus(value)
    except ValueError as exc:
        raise ValidationFailedError(f"Unknown status '{value}'") from exc


def forward_statuses(status: str | IssueStatus) -> list[IssueStatus]:
    """Statuses a UI should offer next. The store itself accepts any of the four."""
    current = parse_status(status)
    if current is IssueStatus.CLOSED:
        return []
    return list(STATUS_FLOW[STATUS_FLOW.index(current) + 1 :])


def sync_resolved_at(issue: Issue, now: datetime | None = None) -> None:
    if IssueStatus(issue.status).is_done:
        if issue.resolved_at is None:
            issue.resolved_at = now or utcnow()
    else:
        issue.resolved_at = None


def change_status(
    issue: Issue,
    new_status: str | IssueStatus,
    *,
    actor_id: str | None,
    note: str | None = None,
    is_public: bool = True,
    now: datetime | None = None,
) -> IssueUpdate | None:
    """Move ``issue`` to ``new_status`` and append the audit row. No-op when unchanged."""
    target = parse_status(new_status)
    old = issue.status
    if old == target.value:
        return None

    issue.status = target.value
    sync_resolved_at(issue, now)

    update_type = UpdateType.RESOLUTION if target is IssueStatus.RESOLVED else UpdateType.STATUS_CHANGE
    content = note or f"Status changed from {old.replace('_', ' ')} to {target.value.replace('_', ' ')}."
    update = IssueUpdate(
        update_type=update_type.value,
        content=content,
        old_status=old,
        new_status=target.value,
        created_by=actor_id,
        is_public=is_public,
    )
    issue.updates.append(update)
    logger.info(
        "Issue {issue_id} moved {old} -> {new}",
        issue_id=issue.id,
        old=old,
        new=target.value,
    )
    return update
