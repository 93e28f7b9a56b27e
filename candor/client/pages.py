from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from candor.client.api import CandorAPI, ClientError
from candor.client.dashboard import (
    CategorySlice,
    DashboardStats,
    average_resolution_hours,
    category_breakdown,
    dashboard_stats,
    filter_issues,
    recent_issues,
    severity_counts,
)
from candor.client.forms import (
    ProfileForm,
    ReportClassificationStep,
    ReportDetailsStep,
    ReportForm,
    SignInForm,
    SignUpForm,
    TrackForm,
    validate_form,
)
from candor.client.notifications import Notifier
from candor.client.store import CreatedReport, IssueStore
from candor.core.errors import PermissionDeniedError
from candor.models.issue import IssueSeverity, IssueStatus
from candor.schemas import CapabilitiesRead, IssuePatch, IssueRead, ProfileRead, TrackedIssue
from candor.services.lifecycle import forward_statuses
from candor.utils.time import utcnow

REPORT_STEPS = {1: ReportDetailsStep, 2: ReportClassificationStep, 3: ReportForm}
GENERIC_FAILURE = "Please try again or contact support if the problem persists."


@dataclass
class ReportPage:
    """Three-step report wizard: details, classification, review."""

    store: IssueStore
    step: int = 1
    data: dict[str, Any] = field(default_factory=lambda: {"severity": IssueSeverity.MEDIUM.value, "anonymous": False})
    errors: dict[str, str] = field(default_factory=dict)
    created: CreatedReport | None = None

    def next(self, **values: Any) -> bool:
        self.data.update(values)
        model, self.errors = validate_form(REPORT_STEPS[self.step], self.data)
        if model is None:
            return False
        self.step = min(self.step + 1, 3)
        return True

    def back(self) -> None:
        self.errors = {}
        self.step = max(self.step - 1, 1)

    def submit(self, **values: Any) -> CreatedReport | None:
        self.data.update(values)
        form, self.errors = validate_form(ReportForm, self.data)
        if form is None:
            return None

        try:
            self.created = self.store.create_issue(form.to_issue_payload(utcnow().isoformat()))
        except (ClientError, ValueError):
            self.store.notifier.error("Failed to submit report", GENERIC_FAILURE)
            return None

        if form.anonymous:
            self.store.notifier.notify(
                "Report submitted successfully",
                "Your anonymous report has been submitted. Save your tracking token for updates.",
            )
        else:
            self.store.notifier.notify(
                "Report submitted successfully",
                "Your report has been submitted and assigned a tracking number.",
            )
        return self.created


@dataclass
class TrackPage:
    store: IssueStore
    issue: TrackedIssue | None = None
    errors: dict[str, str] = field(default_factory=dict)

    def lookup(self, token: str) -> TrackedIssue | None:
        form, self.errors = validate_form(TrackForm, {"token": token})
        if form is None:
            return None

        try:
            self.issue = self.store.track_issue_by_token(form.token)
        except ClientError:
            self.issue = None
            return None

        if self.issue is None:
            self.store.notifier.error("Issue not found", "Please check your tracking token and try again.")
        else:
            self.store.notifier.notify("Issue found", "Here's the current status of your report.")
        return self.issue

    def timeline(self) -> list[tuple[str, Any]]:
        """(label, timestamp) milestones for the tracked issue."""
        if self.issue is None:
            return []
        events: list[tuple[str, Any]] = [("Submitted", self.issue.created_at)]
        for update in self.issue.updates:
            label = update.content
            if update.new_status is not None:
                label = f"{update.new_status.value.replace('_', ' ').title()}: {update.content}"
            events.append((label, update.created_at))
        if self.issue.resolved_at is not None:
            events.append(("Resolved", self.issue.resolved_at))
        return events


@dataclass
class DashboardPage:
    store: IssueStore
    capabilities: CapabilitiesRead = field(default_factory=CapabilitiesRead)
    status_filter: IssueStatus | None = None

    def refresh(self) -> None:
        self.store.load()

    @property
    def visible_issues(self) -> list[IssueRead]:
        return filter_issues(self.store.issues, status=self.status_filter)

    def stats(self) -> DashboardStats:
        return dashboard_stats(self.store.issues)

    def recent(self, limit: int = 5) -> list[IssueRead]:
        return recent_issues(self.visible_issues, limit)

    def analytics(self) -> dict[str, Any]:
        issues = self.store.issues
        categories: list[CategorySlice] = category_breakdown(issues)
        return {
            "categories": categories,
            "severity": severity_counts(issues),
            "average_resolution_hours": average_resolution_hours(issues),
            "resolution_rate": dashboard_stats(issues).resolution_rate,
        }

    def actions_for(self, issue: IssueRead) -> list[IssueStatus]:
        if not self.capabilities.can_update_issues:
            return []
        return forward_statuses(issue.status)

    def move(self, issue: IssueRead, status: IssueStatus, note: str | None = None) -> IssueRead | None:
        try:
            return self.store.update_issue(issue.id, IssuePatch(status=status, note=note), self.capabilities)
        except (ClientError, PermissionDeniedError) as exc:
            logger.debug("Status change rejected: {error}", error=exc)
            return None


@dataclass
class AuthPage:
    api: CandorAPI
    notifier: Notifier
    errors: dict[str, str] = field(default_factory=dict)
    profile: ProfileRead | None = None

    def sign_in(self, **values: Any) -> ProfileRead | None:
        form, self.errors = validate_form(SignInForm, values)
        if form is None:
            return None
        try:
            session = self.api.sign_in(form.email, form.password)
        except ClientError as exc:
            self.notifier.error("Sign in failed", exc.message)
            return None
        self.profile = ProfileRead.model_validate(session["profile"])
        self.notifier.notify("Welcome back!", f"Signed in as {self.profile.email}")
        return self.profile

    def sign_up(self, **values: Any) -> ProfileRead | None:
        form, self.errors = validate_form(SignUpForm, values)
        if form is None:
            return None
        try:
            session = self.api.sign_up(form.to_signup_payload())
        except ClientError as exc:
            self.notifier.error("Sign up failed", exc.message)
            return None
        self.profile = ProfileRead.model_validate(session["profile"])
        self.notifier.notify("Account created", "Your profile has been set up.")
        return self.profile


@dataclass
class ProfilePage:
    api: CandorAPI
    notifier: Notifier
    profile: ProfileRead | None = None
    capabilities: CapabilitiesRead | None = None
    errors: dict[str, str] = field(default_factory=dict)

    def load(self) -> ProfileRead | None:
        try:
            self.profile = ProfileRead.model_validate(self.api.profile())
            self.capabilities = CapabilitiesRead.model_validate(self.api.capabilities())
        except ClientError as exc:
            self.notifier.error("Error loading profile", exc.message)
            return None
        return self.profile

    def save(self, **values: Any) -> ProfileRead | None:
        form, self.errors = validate_form(ProfileForm, values)
        if form is None:
            return None
        try:
            self.profile = ProfileRead.model_validate(self.api.update_profile(form.model_dump(exclude_unset=True)))
        except ClientError as exc:
            self.notifier.error("Error updating profile", exc.message)
            return None
        self.notifier.notify("Profile updated successfully", "Your changes have been saved.")
        return self.profile
