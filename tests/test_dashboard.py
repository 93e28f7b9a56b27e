"""Tests for dashboard filtering and statistics."""

from datetime import datetime, timedelta, timezone

import pytest

from candor.client.dashboard import (
    UNCATEGORIZED,
    average_resolution_hours,
    category_breakdown,
    dashboard_stats,
    filter_issues,
    recent_issues,
    severity_counts,
    status_counts,
)
from candor.models.issue import IssueSeverity, IssueStatus
from candor.schemas import IssueRead

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def _issue(n, status="open", severity="medium", category=None, age_hours=0, resolved_after=None, title=None):
    created = NOW - timedelta(hours=age_hours)
    return IssueRead(
        id=f"issue-{n}",
        title=title or f"Issue {n}",
        description="Something needs attention in the office.",
        category_id=category["id"] if category else None,
        severity=severity,
        status=status,
        created_at=created,
        updated_at=created,
        resolved_at=created + timedelta(hours=resolved_after) if resolved_after is not None else None,
        category=category,
    )


SAFETY = {"id": "cat-safety", "name": "Safety Concerns", "color": "#dc2626", "icon": "AlertTriangle", "created_at": NOW}
IT = {"id": "cat-it", "name": "IT Support", "color": "#06b6d4", "icon": "Monitor", "created_at": NOW}


@pytest.fixture
def issues():
    return [
        _issue(1, "open", "high", SAFETY, age_hours=1, title="Broken handrail"),
        _issue(2, "in_progress", "medium", IT, age_hours=5),
        _issue(3, "resolved", "low", IT, age_hours=48, resolved_after=10),
        _issue(4, "closed", "critical", SAFETY, age_hours=72, resolved_after=20),
        _issue(5, "open", "low", None, age_hours=2),
    ]


class TestFilterIssues:
    def test_status_filter_returns_only_that_status(self, issues):
        result = filter_issues(issues, status="open")

        assert [issue.id for issue in result] == ["issue-1", "issue-5"]
        assert all(issue.status is IssueStatus.OPEN for issue in result)

    def test_min_severity_uses_rank(self, issues):
        result = filter_issues(issues, min_severity=IssueSeverity.HIGH)

        assert {issue.id for issue in result} == {"issue-1", "issue-4"}

    def test_combined_filters(self, issues):
        result = filter_issues(issues, category_id="cat-it", created_after=NOW - timedelta(hours=24))

        assert [issue.id for issue in result] == ["issue-2"]

    def test_search_matches_title(self, issues):
        assert [issue.id for issue in filter_issues(issues, search="HANDRAIL")] == ["issue-1"]

    def test_no_filters_returns_everything(self, issues):
        assert filter_issues(issues) == issues


class TestStats:
    def test_status_counts_sum_to_total(self, issues):
        counts = status_counts(issues)

        assert set(counts) == set(IssueStatus)
        assert sum(counts.values()) == len(issues)

    def test_dashboard_stats(self, issues):
        stats = dashboard_stats(issues)

        assert stats.total == 5
        assert stats.open == 2
        assert stats.in_progress == 1
        assert stats.done == 2
        assert stats.resolution_rate == pytest.approx(0.4)

    def test_empty_stats(self):
        stats = dashboard_stats([])

        assert stats.total == 0
        assert stats.resolution_rate == 0.0
        assert average_resolution_hours([]) is None

    def test_severity_counts(self, issues):
        counts = severity_counts(issues)

        assert counts[IssueSeverity.LOW] == 2
        assert counts[IssueSeverity.CRITICAL] == 1

    def test_category_breakdown(self, issues):
        slices = category_breakdown(issues)

        assert [(s.name, s.count) for s in slices] == [("Safety Concerns", 2), ("IT Support", 2), (UNCATEGORIZED, 1)]
        assert slices[0].color == "#dc2626"

    def test_average_resolution_hours(self, issues):
        assert average_resolution_hours(issues) == pytest.approx(15.0)

    def test_recent_issues_newest_first(self, issues):
        assert [issue.id for issue in recent_issues(issues, limit=3)] == ["issue-1", "issue-5", "issue-2"]
