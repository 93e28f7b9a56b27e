from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from candor.models.issue import IssueSeverity, IssueStatus
from candor.schemas import IssueRead
from candor.utils.time import ensure_utc

UNCATEGORIZED = "Uncategorized"


@dataclass(frozen=True)
class DashboardStats:
    total: int
    open: int
    in_progress: int
    resolved: int
    closed: int

    @property
    def done(self) -> int:
        return self.resolved + self.closed

    @property
    def resolution_rate(self) -> float:
        return self.done / self.total if self.total else 0.0


@dataclass(frozen=True)
class CategorySlice:
    name: str
    color: str | None
    count: int


def filter_issues(
    issues: Iterable[IssueRead],
    *,
    status: IssueStatus | str | None = None,
    severity: IssueSeverity | str | None = None,
    category_id: str | None = None,
    min_severity: IssueSeverity | str | None = None,
    created_after: datetime | None = None,
    search: str | None = None,
) -> list[IssueRead]:
    wanted_status = IssueStatus(status) if status else None
    wanted_severity = IssueSeverity(severity) if severity else None
    floor = IssueSeverity(min_severity) if min_severity else None
    needle = search.strip().lower() if search and search.strip() else None
    after = ensure_utc(created_after) if created_after else None

    result = []
    for issue in issues:
        if wanted_status is not None and issue.status != wanted_status:
            continue
        if wanted_severity is not None and issue.severity != wanted_severity:
            continue
        if floor is not None and issue.severity < floor:
            continue
        if category_id and issue.category_id != category_id:
            continue
        if after is not None and ensure_utc(issue.created_at) < after:
            continue
        if needle and needle not in issue.title.lower() and needle not in issue.description.lower():
            continue
        result.append(issue)
    return result


def status_counts(issues: Iterable[IssueRead]) -> dict[IssueStatus, int]:
    counts = Counter(issue.status for issue in issues)
    return {status: counts.get(status, 0) for status in IssueStatus}


def severity_counts(issues: Iterable[IssueRead]) -> dict[IssueSeverity, int]:
    counts = Counter(issue.severity for issue in issues)
    return {severity: counts.get(severity, 0) for severity in IssueSeverity}


def category_breakdown(issues: Iterable[IssueRead]) -> list[CategorySlice]:
    counts: Counter[str] = Counter()
    colors: dict[str, str | None] = {}
    for issue in issues:
        name = issue.category.name if issue.category else UNCATEGORIZED
        counts[name] += 1
        colors.setdefault(name, issue.category.color if issue.category else None)
    return [CategorySlice(name=name, color=colors[name], count=count) for name, count in counts.most_common()]


def dashboard_stats(issues: Iterable[IssueRead]) -> DashboardStats:
    issues = list(issues)
    counts = status_counts(issues)
    return DashboardStats(
        total=len(issues),
        open=counts[IssueStatus.OPEN],
        in_progress=counts[IssueStatus.IN_PROGRESS],
        resolved=counts[IssueStatus.RESOLVED],
        closed=counts[IssueStatus.CLOSED],
    )


def average_resolution_hours(issues: Iterable[IssueRead]) -> float | None:
    durations = [
        (ensure_utc(issue.resolved_at) - ensure_utc(issue.created_at)).total_seconds() / 3600
        for issue in issues
        if issue.resolved_at is not None
    ]
    if not durations:
        return None
    return sum(durations) / len(durations)


def recent_issues(issues: Iterable[IssueRead], limit: int = 5) -> list[IssueRead]:
    return sorted(issues, key=lambda issue: ensure_utc(issue.created_at), reverse=True)[:limit]
