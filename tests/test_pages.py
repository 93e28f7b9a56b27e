"""End-to-end page flows over the in-process API."""

import pytest

from candor.client.api import CandorAPI
from candor.client.notifications import Notifier
from candor.client.pages import AuthPage, DashboardPage, ProfilePage, ReportPage, TrackPage
from candor.client.store import IssueStore
from candor.client.vault import TokenVault
from candor.models.issue import IssueStatus
from candor.schemas import CapabilitiesRead


@pytest.fixture
def api(client):
    return CandorAPI(http=client, api_key="")


@pytest.fixture
def store(api):
    return IssueStore(api, notifier=Notifier(), vault=TokenVault())


def _file_report(store, category_id, anonymous=True):
    page = ReportPage(store)
    assert page.next(
        title="Broken light in lobby",
        description="The main ceiling light in the lobby has been flickering all week.",
    )
    assert page.next(category_id=category_id, severity="medium", location="Lobby")
    return page.submit(anonymous=anonymous)


class TestReportAndTrack:
    def test_anonymous_report_is_trackable(self, store, maintenance):
        created = _file_report(store, maintenance.id)

        assert created is not None
        assert store.notifier.last.title == "Report submitted successfully"

        track = TrackPage(store)
        issue = track.lookup(created.token)

        assert issue.title == "Broken light in lobby"
        assert issue.status is IssueStatus.OPEN
        assert issue.category.name == "Maintenance"
        assert issue.reporter_id is None
        assert issue.metadata["submitted_via"] == "web_form"
        assert store.notifier.last.title == "Issue found"
        assert track.timeline()[0][0] == "Submitted"

    def test_lobby_light_report_round_trip(self, store, maintenance):
        description = "The lobby light has flickered for two weeks and now stays off."
        page = ReportPage(store)
        page.next(title="Broken light in lobby", description=description)
        page.next(category_id=maintenance.id, severity="low")

        created = page.submit(anonymous=True)
        tracked = TrackPage(store).lookup(created.token)

        assert created.token
        assert tracked.status is IssueStatus.OPEN
        assert tracked.title == "Broken light in lobby"
        assert tracked.description == description
        assert tracked.severity.value == "low"
        assert tracked.category_id == maintenance.id

    def test_report_survives_unwritable_vault(self, api, maintenance, tmp_path):
        store = IssueStore(api, notifier=Notifier(), vault=TokenVault(tmp_path))

        created = _file_report(store, maintenance.id)

        assert created is not None
        titles = [notification.title for notification in store.notifier.history]
        assert "Could not save tracking token" in titles
        assert TrackPage(store).lookup(created.token).id == created.issue.id

    def test_wizard_blocks_on_invalid_step(self, store):
        page = ReportPage(store)

        assert not page.next(title="Hi", description="short")
        assert page.step == 1
        assert page.errors["title"] == "Title must be at least 5 characters"

    def test_back_returns_to_previous_step(self, store, maintenance):
        page = ReportPage(store)
        page.next(
            title="Broken light in lobby",
            description="The main ceiling light in the lobby has been flickering all week.",
        )

        page.back()

        assert page.step == 1
        assert page.data["title"] == "Broken light in lobby"

    def test_failed_submission_notifies(self, store):
        page = ReportPage(store)

        result = page.submit(
            title="Broken light in lobby",
            description="The main ceiling light in the lobby has been flickering all week.",
            category_id="missing-category",
        )

        assert result is None
        assert store.notifier.last.title == "Failed to submit report"

    def test_unknown_token(self, store):
        track = TrackPage(store)

        assert track.lookup("not-a-token") is None
        assert store.notifier.last.title == "Issue not found"
        assert track.timeline() == []

    def test_blank_token_is_a_form_error(self, store):
        track = TrackPage(store)

        assert track.lookup("") is None
        assert track.errors == {"token": "Please enter your tracking token"}


class TestDashboard:
    def test_hr_resolves_issue(self, store, api, maintenance, hr_user):
        created = _file_report(store, maintenance.id)
        api.sign_in("hr@example.com", "password123")
        dashboard = DashboardPage(store, capabilities=CapabilitiesRead.model_validate(api.capabilities()))
        dashboard.refresh()
        issue = store.get(created.issue.id)

        assert dashboard.actions_for(issue) == [IssueStatus.IN_PROGRESS, IssueStatus.RESOLVED, IssueStatus.CLOSED]
        moved = dashboard.move(issue, IssueStatus.RESOLVED, note="Bulb replaced.")

        assert moved.status is IssueStatus.RESOLVED
        assert moved.resolved_at is not None
        assert dashboard.stats().resolved == 1
        dashboard.status_filter = IssueStatus.OPEN
        assert dashboard.visible_issues == []

        tracked = TrackPage(store).lookup(created.token)
        assert tracked.status is IssueStatus.RESOLVED
        assert [update.content for update in tracked.updates] == ["Bulb replaced."]

    def test_employee_sees_no_actions(self, store, maintenance):
        created = _file_report(store, maintenance.id)
        dashboard = DashboardPage(store)

        assert dashboard.actions_for(created.issue) == []
        assert dashboard.move(created.issue, IssueStatus.RESOLVED) is None
        assert store.get(created.issue.id).status is IssueStatus.OPEN

    def test_analytics(self, store, maintenance):
        _file_report(store, maintenance.id)
        dashboard = DashboardPage(store)
        dashboard.refresh()

        analytics = dashboard.analytics()

        assert analytics["categories"][0].name == "Maintenance"
        assert analytics["average_resolution_hours"] is None
        assert analytics["resolution_rate"] == 0.0


class TestAccountPages:
    def test_sign_up_then_edit_profile(self, api):
        notifier = Notifier()
        auth = AuthPage(api, notifier)

        profile = auth.sign_up(
            email="grace@example.com",
            password="secret123",
            confirm_password="secret123",
            first_name="Grace",
            last_name="Hopper",
            role="manager",
            company="Navy",
            job_title="Rear Admiral",
        )

        assert profile.display_name == "Grace Hopper"
        assert profile.role == "manager"

        page = ProfilePage(api, notifier)
        assert page.load().email == "grace@example.com"
        assert page.capabilities.can_update_issues is True

        saved = page.save(phone="555-0199")
        assert saved.phone == "555-0199"
        assert notifier.last.title == "Profile updated successfully"

    def test_sign_in_failure(self, api, employee):
        notifier = Notifier()
        auth = AuthPage(api, notifier)

        assert auth.sign_in(email="employee@example.com", password="wrong-pass") is None
        assert notifier.last.title == "Sign in failed"

    def test_sign_up_form_errors_stop_request(self, api):
        auth = AuthPage(api, Notifier())

        assert auth.sign_up(email="grace@example.com", password="secret123", confirm_password="nope") is None
        assert auth.errors["confirm_password"] == "Passwords don't match"
