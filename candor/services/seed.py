from __future__ import annotations

from datetime import timedelta

from loguru import logger
from nanoid import generate
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from candor.models.issue import Issue, IssueSeverity, IssueStatus, IssueUpdate, UpdateType
from candor.models.reference import Department, IssueCategory
from candor.services.tokens import AnonymousTokenService
from candor.utils.time import utcnow

DEFAULT_DEPARTMENTS: list[tuple[str, str]] = [
    ("Human Resources", "HR related issues and policies"),
    ("Engineering", "Technical team and development issues"),
    ("Sales", "Sales team and customer-related issues"),
    ("Marketing", "Marketing and communication issues"),
    ("Operations", "General operations and logistics"),
    ("Finance", "Financial and accounting issues"),
    ("General", "General workplace issues"),
]

DEFAULT_CATEGORIES: list[tuple[str, str, str, str]] = [
    ("Workplace Harassment", "Sexual harassment, discrimination, bullying", "#ef4444", "Shield"),
    ("Workload & Stress", "Excessive workload, burnout, work-life balance", "#f59e0b", "Clock"),
    ("Management Issues", "Poor leadership, unfair treatment, communication problems", "#8b5cf6", "Users"),
    ("Safety Concerns", "Physical safety, health hazards, unsafe conditions", "#dc2626", "AlertTriangle"),
    ("Compensation & Benefits", "Pay issues, benefits, promotion concerns", "#10b981", "DollarSign"),
    ("Workplace Environment", "Office conditions, resources, equipment issues", "#06b6d4", "Building"),
    ("Ethics & Compliance", "Unethical behavior, policy violations, fraud", "#6366f1", "Scale"),
    ("Communication", "Poor communication, lack of transparency", "#84cc16", "MessageCircle"),
    ("Training & Development", "Lack of training, career development issues", "#f97316", "BookOpen"),
    ("Other", "Issues not covered by other categories", "#6b7280", "MoreHorizontal"),
]

# (token prefix, title, description, category, department, severity, status, location, age)
SAMPLE_ISSUES = [
    (
        "saf",
        "Broken handrail on staircase",
        "The handrail on the main staircase between floors 2 and 3 is loose and wobbles when used.",
        "Safety Concerns",
        "Operations",
        IssueSeverity.HIGH,
        IssueStatus.OPEN,
        "Building A, Main Staircase (Floor 2-3)",
        timedelta(hours=12),
    ),
    (
        "mnt",
        "Air conditioning not working in Conference Room B",
        "The AC unit in Conference Room B has been making loud noises and is not cooling properly.",
        "Workplace Environment",
        "Operations",
        IssueSeverity.MEDIUM,
        IssueStatus.IN_PROGRESS,
        "Building B, Conference Room B",
        timedelta(days=1),
    ),
    (
        "hr",
        "Inappropriate behavior from colleague",
        "Repeated inappropriate comments from a colleague have been ongoing for several weeks.",
        "Workplace Harassment",
        "Human Resources",
        IssueSeverity.HIGH,
        IssueStatus.OPEN,
        "Building C, 2nd Floor",
        timedelta(days=3),
    ),
    (
        "it",
        "Computer running extremely slow",
        "My workstation has been running very slowly for the past week and frequently freezes.",
        "Workplace Environment",
        "Engineering",
        IssueSeverity.MEDIUM,
        IssueStatus.RESOLVED,
        "Building A, Desk 45",
        timedelta(weeks=1),
    ),
]


def seed_reference_data(session: Session) -> None:
    if not session.scalar(select(func.count()).select_from(Department)):
        session.add_all(Department(name=name, description=description) for name, description in DEFAULT_DEPARTMENTS)
        logger.info("Seeded {count} departments", count=len(DEFAULT_DEPARTMENTS))

    if not session.scalar(select(func.count()).select_from(IssueCategory)):
        session.add_all(
            IssueCategory(name=name, description=description, color=color, icon=icon)
            for name, description, color, icon in DEFAULT_CATEGORIES
        )
        logger.info("Seeded {count} issue categories", count=len(DEFAULT_CATEGORIES))

    session.flush()


def seed_sample_issues(session: Session, ttl_days: int = 90) -> None:
    """Demo content for an empty dashboard. Token prefixes are cosmetic."""
    if session.scalar(select(func.count()).select_from(Issue)):
        return

    categories = {c.name: c for c in session.scalars(select(IssueCategory))}
    departments = {d.name: d for d in session.scalars(select(Department))}
    tokens = AnonymousTokenService(session=session)
    now = utcnow()

    for prefix, title, description, category, department, severity, status, location, age in SAMPLE_ISSUES:
        created = now - age
        issue = Issue(
            title=title,
            description=description,
            category=categories.get(category),
            department=departments.get(department),
            severity=severity.value,
            status=status.value,
            anonymous_token=f"{prefix}_{generate(size=12)}",
            location=location,
            metadata_={"submitted_via": "seed"},
            created_at=created,
            updated_at=created,
            resolved_at=created + timedelta(days=6) if status.is_done else None,
        )
        session.add(issue)
        session.flush()
        tokens.issue_token(issue=issue, ttl_days=ttl_days)

        if status is not IssueStatus.OPEN:
            session.add(
                IssueUpdate(
                    issue_id=issue.id,
                    update_type=(UpdateType.RESOLUTION if status.is_done else UpdateType.STATUS_CHANGE).value,
                    content=f"Status moved to {status.value.replace('_', ' ')}.",
                    old_status=IssueStatus.OPEN.value,
                    new_status=status.value,
                )
            )

    session.flush()
    logger.info("Seeded {count} sample issues", count=len(SAMPLE_ISSUES))
