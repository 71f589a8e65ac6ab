"""
Seed script to populate a demo organization hierarchy.

Creates:
- A root organization (HQ) with two child organizations (Downtown, Uptown)
- An Owner and an Admin at HQ, a Viewer in each child
- A handful of tasks spread across the three organizations

Development bearer tokens for every seeded user are logged at the end.

Usage:
    python -m scripts.seed_demo_data
"""
import asyncio
from datetime import timedelta

import jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.core import config
from taskboard.core.database.base import utcnow
from taskboard.core.database.engine import get_db, init_db
from taskboard.features.access.roles import Role
from taskboard.features.organizations.models import Organization
from taskboard.features.tasks.models import Task, TaskCategory, TaskPriority, TaskStatus
from taskboard.features.users.models import User
from taskboard.utils import get_logger


log = get_logger(__name__)

TOKEN_LIFETIME = timedelta(days=7)


DEMO_ORGANIZATIONS = [
    # (name, parent name)
    ("HQ", None),
    ("Downtown", "HQ"),
    ("Uptown", "HQ"),
]

DEMO_USERS = [
    # (email, first name, last name, role, organization name)
    ("owner@example.com", "Olivia", "Owner", Role.OWNER, "HQ"),
    ("admin@example.com", "Adam", "Admin", Role.ADMIN, "HQ"),
    ("downtown.viewer@example.com", "Dana", "Viewer", Role.VIEWER, "Downtown"),
    ("uptown.viewer@example.com", "Uma", "Viewer", Role.VIEWER, "Uptown"),
]

DEMO_TASKS = [
    # (title, organization name, creator email, status, priority, category)
    ("Quarterly planning", "HQ", "owner@example.com", TaskStatus.TODO, TaskPriority.HIGH, TaskCategory.WORK),
    ("Renew office lease", "HQ", "admin@example.com", TaskStatus.BACKLOG, TaskPriority.CRITICAL, TaskCategory.WORK),
    ("Restock supplies", "Downtown", "admin@example.com", TaskStatus.IN_PROGRESS, TaskPriority.MEDIUM, TaskCategory.SHOPPING),
    ("Fire drill", "Downtown", "downtown.viewer@example.com", TaskStatus.TODO, TaskPriority.LOW, TaskCategory.HEALTH),
    ("Window cleaning", "Uptown", "uptown.viewer@example.com", TaskStatus.DONE, TaskPriority.LOW, TaskCategory.OTHER),
]


async def seed_organizations(db: AsyncSession) -> dict[str, Organization]:
    """
    Create the demo organization hierarchy.

    Args:
        db: Database session

    Returns:
        Dictionary of organization name -> Organization
    """
    log.info("Creating demo organizations...")
    organizations: dict[str, Organization] = {}

    for name, parent_name in DEMO_ORGANIZATIONS:
        existing = await db.scalar(select(Organization).where(Organization.name == name))
        if existing:
            log.debug("Organization '%s' already exists, skipping", name)
            organizations[name] = existing
            continue

        parent = organizations[parent_name] if parent_name else None
        organization = Organization(name=name, parent_id=parent.id if parent else None)
        db.add(organization)
        # Flush so children can reference the parent id
        await db.flush()
        organizations[name] = organization
        log.info("Created organization: %s", name)

    await db.commit()
    return organizations


async def seed_users(db: AsyncSession, organizations: dict[str, Organization]) -> dict[str, User]:
    log.info("Creating demo users...")
    users: dict[str, User] = {}

    for email, first_name, last_name, role, org_name in DEMO_USERS:
        existing = await db.scalar(select(User).where(User.email == email))
        if existing:
            log.debug("User '%s' already exists, skipping", email)
            users[email] = existing
            continue

        user = User(
            email=email,
            first_name=first_name,
            last_name=last_name,
            role=role,
            organization_id=organizations[org_name].id,
        )
        db.add(user)
        users[email] = user
        log.info("Created user %s (%s in %s)", email, role.value, org_name)

    await db.commit()
    return users


async def seed_tasks(
    db: AsyncSession,
    organizations: dict[str, Organization],
    users: dict[str, User],
):
    log.info("Creating demo tasks...")
    created = 0

    for title, org_name, creator_email, status, priority, category in DEMO_TASKS:
        organization = organizations[org_name]
        existing = await db.scalar(
            select(Task).where(Task.title == title, Task.organization_id == organization.id)
        )
        if existing:
            log.debug("Task '%s' already exists, skipping", title)
            continue

        db.add(Task(
            title=title,
            status=status,
            priority=priority,
            category=category,
            due_date=utcnow() + timedelta(days=7 * (created + 1)),
            organization_id=organization.id,
            created_by_id=users[creator_email].id,
        ))
        created += 1

    await db.commit()
    log.info("Created %d tasks", created)


def development_token(user: User) -> str:
    """Bearer token for local testing, signed with the configured secret."""
    return jwt.encode(
        {"sub": user.id, "exp": utcnow() + TOKEN_LIFETIME},
        config.JWT_SECRET,
        algorithm=config.JWT_ALGORITHM,
    )


async def main():
    """Main seeding function."""
    log.info("Starting demo data seeding...")

    # Initialize database tables first
    log.info("Initializing database tables...")
    await init_db()

    # Get database session
    async for db in get_db():
        try:
            organizations = await seed_organizations(db)
            users = await seed_users(db, organizations)
            await seed_tasks(db, organizations, users)

            log.info("Demo data seeding completed successfully!")
            log.info("")
            log.info("Development tokens:")
            for email, user in users.items():
                log.info("  - %s (%s): %s", email, user.role.value, development_token(user))

        except Exception as e:
            log.error("Error seeding demo data: %s", e, exc_info=True)
            await db.rollback()
            raise

        break  # Only use first session


if __name__ == "__main__":
    asyncio.run(main())
