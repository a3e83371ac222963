from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy.orm import Session

import ryd.models  # noqa: F401
from ryd.auth.security import hash_password
from ryd.core.db import Base, SessionLocal, engine
from ryd.models.document import DocumentCategory
from ryd.models.finance import FinancialTransaction
from ryd.models.project import Project, ProjectMember
from ryd.models.task import Task, TaskAssignee, TaskTeam
from ryd.models.team import Team, UserTeam
from ryd.models.user import User
from ryd.services.user_accounts import now_utc, split_name

DEMO_PASSWORD = "Demo1234!"

DEMO_USERS = [
    ("superadmin@example.com", "Super Admin", "SUPER_ADMIN", "ACTIVE"),
    ("admin@example.com", "System Admin", "ADMIN", "ACTIVE"),
    ("staff@example.com", "Program Staff", "STAFF", "ACTIVE"),
    ("volunteer@example.com", "Active Volunteer", "VOLUNTEER", "ACTIVE"),
    ("pending@example.com", "Pending Volunteer", "VOLUNTEER", "PENDING"),
    ("suspended@example.com", "Suspended Volunteer", "VOLUNTEER", "SUSPENDED"),
    ("rejected@example.com", "Rejected Applicant", "VOLUNTEER", "REJECTED"),
]

DEMO_TEAMS = [
    ("Outreach", "Community outreach and events", "#16a34a", "megaphone"),
    ("Education", "Tutoring and youth programmes", "#2563eb", "book"),
    ("Logistics", "Transport and supplies", "#f59e0b", "truck"),
]

DEMO_CATEGORIES = [
    ("Policies", "Organisation policies", "#4f46e5"),
    ("Reports", "Programme reports", "#0891b2"),
    ("Training", "Volunteer training material", "#65a30d"),
]


def ensure_user(db: Session, email: str, name: str, role: str, status: str, approver: User | None) -> User:
    user = db.query(User).filter_by(email=email).first()
    if user is None:
        first_name, last_name = split_name(name)
        user = User(
            email=email,
            name=name,
            first_name=first_name,
            last_name=last_name,
            hashed_password=hash_password(DEMO_PASSWORD),
            role=role,
            status=status,
        )
        if status == "ACTIVE":
            user.approved_at = now_utc()
            user.approved_by_id = approver.id if approver else None
        db.add(user)
        db.commit()
        db.refresh(user)
    return user


def ensure_teams(db: Session, members: list[User]) -> dict[str, Team]:
    teams: dict[str, Team] = {}
    for name, description, color, icon in DEMO_TEAMS:
        team = db.query(Team).filter_by(name=name).first()
        if team is None:
            team = Team(name=name, description=description, color=color, icon=icon, is_active=True)
            db.add(team)
            db.commit()
            db.refresh(team)
        teams[name] = team

    outreach = teams["Outreach"]
    for index, member in enumerate(members):
        exists = db.query(UserTeam).filter_by(user_id=member.id, team_id=outreach.id).first()
        if exists is None:
            db.add(UserTeam(user_id=member.id, team_id=outreach.id, role="LEADER" if index == 0 else "MEMBER"))
    db.commit()
    return teams


def ensure_project(db: Session, owner: User, members: list[User], teams: dict[str, Team]) -> Project:
    project = db.query(Project).filter_by(name="Community Clean-up").first()
    if project is not None:
        return project

    now = now_utc()
    project = Project(
        name="Community Clean-up",
        description="Quarterly neighbourhood clean-up drive",
        status="ACTIVE",
        start_date=now - timedelta(days=7),
        end_date=now + timedelta(days=30),
        owner_id=owner.id,
    )
    project.members = [ProjectMember(user_id=member.id) for member in members]
    db.add(project)
    db.flush()

    specs = [
        ("Book venue", "COMPLETED", "HIGH", -3),
        ("Order supplies", "IN_PROGRESS", "MEDIUM", 5),
        ("Recruit volunteers", "NOT_STARTED", "URGENT", -1),
    ]
    for title, task_status, priority, due_in_days in specs:
        task = Task(
            title=title,
            status=task_status,
            priority=priority,
            end_date=now + timedelta(days=due_in_days),
            completed_at=now if task_status == "COMPLETED" else None,
            project_id=project.id,
            created_by_id=owner.id,
        )
        task.assignees = [TaskAssignee(user_id=member.id) for member in members]
        task.teams = [TaskTeam(team_id=teams["Outreach"].id)]
        db.add(task)
    db.commit()
    return project


def ensure_transactions(db: Session, actor: User, project: Project) -> None:
    if db.query(FinancialTransaction).count():
        return
    now = datetime.now(timezone.utc)
    entries = [
        ("INCOME", Decimal("1200.00"), now - timedelta(days=2), "Membership fees"),
        ("DONATION", Decimal("500.00"), now - timedelta(days=5), "Local business donation"),
        ("GRANT", Decimal("3000.00"), now - timedelta(days=35), "Council youth grant"),
        ("EXPENSE", Decimal("250.50"), now - timedelta(days=1), "Clean-up supplies"),
    ]
    for kind, amount, when, description in entries:
        db.add(
            FinancialTransaction(
                type=kind,
                amount=amount,
                date=when,
                description=description,
                project_id=project.id if kind == "EXPENSE" else None,
                created_by_id=actor.id,
            )
        )
    db.commit()


def ensure_categories(db: Session) -> None:
    for name, description, color in DEMO_CATEGORIES:
        if db.query(DocumentCategory).filter_by(name=name).first() is None:
            db.add(DocumentCategory(name=name, description=description, color=color))
    db.commit()


def main() -> None:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        users: dict[str, User] = {}
        approver: User | None = None
        for email, name, role, status in DEMO_USERS:
            users[email] = ensure_user(db, email, name, role, status, approver)
            approver = approver or users[email]

        staff = users["staff@example.com"]
        volunteer = users["volunteer@example.com"]
        teams = ensure_teams(db, [staff, volunteer])
        project = ensure_project(db, staff, [volunteer], teams)
        ensure_transactions(db, users["admin@example.com"], project)
        ensure_categories(db)
    finally:
        db.close()


if __name__ == "__main__":
    main()
