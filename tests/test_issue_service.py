"""Tests for IssueService."""

from datetime import timedelta

import pytest
from sqlalchemy import select

from candor.core.errors import NotFoundError, PermissionDeniedError, ValidationFailedError
from candor.models.issue import IssueSeverity, IssueStatus, UpdateType
from candor.models.token import AnonymousToken
from candor.schemas import IssueCreate, IssuePatch, IssueUpdateCreate
from candor.services.issues import IssueService
from candor.services.policy import ANONYMOUS, capabilities_for
from candor.utils.time import utcnow


def _payload(category_id, **overrides):
    data = {
        "title": "Broken light in lobby",
        "description": "The main ceiling light in the lobby has been flickering all week.",
        "category_id": category_id,
        "severity": "medium",
    }
    data.update(overrides)
    return IssueCreate(**data)


class TestCreateIssue:
    def test_anonymous_report_hides_reporter(self, db_session, maintenance, employee):
        service = IssueService(session=db_session)

        issue, token = service.create_issue(_payload(maintenance.id), reporter=employee)

        assert issue.reporter_id is None
        assert issue.status == "open"
        assert issue.anonymous_token == token
        assert issue.resolved_at is None
        assert db_session.scalars(select(AnonymousToken).where(AnonymousToken.token == token)).one()

    def test_attributed_report_keeps_reporter(self, db_session, maintenance, employee):
        service = IssueService(session=db_session)

        issue, token = service.create_issue(_payload(maintenance.id, anonymous=False), reporter=employee)

        assert issue.reporter_id == employee.user_id
        assert issue.token_record is None
        assert service.find_by_token(token).id == issue.id

    def test_report_without_reporter_is_anonymous(self, db_session, maintenance):
        issue, _ = IssueService(session=db_session).create_issue(_payload(maintenance.id, anonymous=False))

        assert issue.reporter_id is None

    def test_unknown_category_rejected(self, db_session):
        with pytest.raises(ValidationFailedError):
            IssueService(session=db_session).create_issue(_payload("missing-category"))

    def test_blank_title_rejected(self, maintenance):
        with pytest.raises(ValueError):
            _payload(maintenance.id, title="   ")

    def test_metadata_and_attachments_round_trip(self, db_session, maintenance):
        issue, _ = IssueService(session=db_session).create_issue(
            _payload(maintenance.id, metadata={"submitted_via": "web_form"}, attachments=["photo.jpg"])
        )

        assert issue.metadata_ == {"submitted_via": "web_form"}
        assert issue.attachments == ["photo.jpg"]


class TestQueries:
    def test_list_newest_first_with_filters(self, db_session, maintenance):
        service = IssueService(session=db_session)
        older, _ = service.create_issue(_payload(maintenance.id, title="Older report"))
        newer, _ = service.create_issue(_payload(maintenance.id, title="Newer report", severity="high"))
        older.created_at = utcnow() - timedelta(days=10)
        db_session.flush()

        assert [issue.id for issue in service.list_issues()] == [newer.id, older.id]
        assert [issue.id for issue in service.list_issues(severity=IssueSeverity.HIGH)] == [newer.id]
        assert [i.id for i in service.list_issues(created_after=utcnow() - timedelta(days=1))] == [newer.id]
        assert service.list_issues(status=IssueStatus.RESOLVED) == []

    def test_find_by_token_misses(self, db_session):
        service = IssueService(session=db_session)

        assert service.find_by_token("does-not-exist") is None
        assert service.find_by_token("   ") is None

    def test_get_issue_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            IssueService(session=db_session).get_issue("nope")

    def test_reference_data_sorted_by_name(self, db_session):
        names = [category.name for category in IssueService(session=db_session).list_categories()]

        assert names == sorted(names)
        assert len(names) == 10


class TestUpdateIssue:
    def test_employee_cannot_update(self, db_session, maintenance, employee):
        service = IssueService(session=db_session)
        issue, _ = service.create_issue(_payload(maintenance.id))

        with pytest.raises(PermissionDeniedError):
            service.update_issue(issue.id, IssuePatch(status="resolved"), capabilities=capabilities_for(employee))

        assert issue.status == "open"

    def test_status_change_writes_audit_update(self, db_session, maintenance, hr_user):
        service = IssueService(session=db_session)
        issue, _ = service.create_issue(_payload(maintenance.id))

        updated = service.update_issue(
            issue.id,
            IssuePatch(status="resolved", note="Bulb replaced."),
            capabilities=capabilities_for(hr_user),
        )

        assert updated.status == "resolved"
        assert updated.resolved_at is not None
        [audit] = updated.updates
        assert audit.update_type == UpdateType.RESOLUTION.value
        assert audit.content == "Bulb replaced."
        assert audit.created_by == hr_user.user_id

    def test_assignment_is_private(self, db_session, maintenance, hr_user):
        service = IssueService(session=db_session)
        issue, _ = service.create_issue(_payload(maintenance.id))

        updated = service.update_issue(
            issue.id, IssuePatch(assigned_to=hr_user.user_id), capabilities=capabilities_for(hr_user)
        )

        assert updated.assigned_to == hr_user.user_id
        assert updated.assigned_user.user_id == hr_user.user_id
        assert service.visible_updates(updated, ANONYMOUS) == []
        assert [u.update_type for u in service.visible_updates(updated, capabilities_for(hr_user))] == ["assignment"]

    def test_unknown_assignee_rejected(self, db_session, maintenance, hr_user):
        service = IssueService(session=db_session)
        issue, _ = service.create_issue(_payload(maintenance.id))

        with pytest.raises(ValidationFailedError):
            service.update_issue(issue.id, IssuePatch(assigned_to="ghost"), capabilities=capabilities_for(hr_user))

    @pytest.mark.parametrize("field", ["title", "description", "category_id", "severity", "status", "attachments"])
    def test_patch_rejects_null_for_required_field(self, field):
        with pytest.raises(ValueError, match="cannot be null"):
            IssuePatch(**{field: None})

    def test_patch_omitted_fields_stay_unset(self):
        assert IssuePatch(location=None).model_dump(exclude_unset=True) == {"location": None}

    def test_field_edit_without_status_change(self, db_session, maintenance, hr_user):
        service = IssueService(session=db_session)
        issue, token = service.create_issue(_payload(maintenance.id))

        updated = service.update_issue(
            issue.id, IssuePatch(severity="critical", location="Lobby"), capabilities=capabilities_for(hr_user)
        )

        assert updated.severity == "critical"
        assert updated.location == "Lobby"
        assert updated.anonymous_token == token
        assert updated.updates == []


class TestAddUpdate:
    def test_privileged_comment(self, db_session, maintenance, hr_user):
        service = IssueService(session=db_session)
        issue, _ = service.create_issue(_payload(maintenance.id))

        update = service.add_update(
            issue.id,
            IssueUpdateCreate(content="Facilities has been notified.", is_public=True),
            capabilities=capabilities_for(hr_user),
        )

        assert update.issue_id == issue.id
        assert update.update_type == "comment"

    def test_employee_cannot_post(self, db_session, maintenance, employee):
        service = IssueService(session=db_session)
        issue, _ = service.create_issue(_payload(maintenance.id))

        with pytest.raises(PermissionDeniedError):
            service.add_update(issue.id, IssueUpdateCreate(content="Hello"), capabilities=capabilities_for(employee))

    def test_status_updates_must_go_through_patch(self, db_session, maintenance, hr_user):
        service = IssueService(session=db_session)
        issue, _ = service.create_issue(_payload(maintenance.id))

        with pytest.raises(ValidationFailedError):
            service.add_update(
                issue.id,
                IssueUpdateCreate(update_type="resolution", content="Done"),
                capabilities=capabilities_for(hr_user),
            )
