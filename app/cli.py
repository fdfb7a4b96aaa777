"""CLI commands for management tasks."""

import asyncio
import sys

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import Base, async_session_maker, atomic, engine
from app.core.permissions import AuditAction
from app.core.logging import setup_logging
from app.core.security import get_password_hash
from app.models.user import User
from app.services import audit as audit_service
from app.services import permission as permission_service


async def init_db() -> None:
    """Create all tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print("✓ Tables created")


async def seed_permissions() -> None:
    """Load default roles and the default scope permission matrix."""
    async with async_session_maker() as db:
        roles_added, rows_added = await permission_service.seed_defaults(db)
    print(f"✓ Seeded {roles_added} roles and {rows_added} scope permissions")


async def register_admin(
    db: AsyncSession,
    phone_number: str,
    password: str,
    first_name: str,
    last_name: str,
) -> User:
    """Insert an administrator and record it in the audit log as a system action."""
    admin = User(
        phone_number=phone_number,
        password_hash=get_password_hash(password),
        first_name=first_name,
        last_name=last_name,
        role=settings.ADMIN_ROLE,
        school_id=None,
    )
    async with atomic(db):
        db.add(admin)
        await db.flush()
        await audit_service.log(
            db,
            audit_service.SYSTEM_CONTEXT,
            AuditAction.CREATE,
            User.__tablename__,
            admin.id,
            new_data=audit_service.snapshot(admin),
            summary=f"Created administrator {admin.full_name} from the command line",
        )
    return admin


async def create_admin(
    phone_number: str,
    password: str,
    first_name: str,
    last_name: str,
) -> None:
    """Create an administrator user."""
    async with async_session_maker() as db:
        # Check if phone number is taken
        result = await db.execute(
            select(User).where(User.phone_number == phone_number)
        )
        if result.scalar_one_or_none():
            print(f"Error: Phone number {phone_number} is already registered!")
            sys.exit(1)

        admin = await register_admin(db, phone_number, password, first_name, last_name)

        print("✓ Admin created successfully!")
        print(f"  ID: {admin.id}")
        print(f"  Name: {admin.full_name}")
        print(f"  Phone: {admin.phone_number}")


def usage() -> None:
    print("Usage: python -m app.cli <command>")
    print("Commands:")
    print("  init-db")
    print("  seed-permissions")
    print("  create-admin <phone> <password> <first_name> <last_name>")


def main() -> None:
    """CLI entry point."""
    setup_logging()

    if len(sys.argv) < 2:
        usage()
        sys.exit(1)

    command = sys.argv[1]

    if command == "init-db":
        asyncio.run(init_db())
    elif command == "seed-permissions":
        asyncio.run(seed_permissions())
    elif command == "create-admin":
        if len(sys.argv) != 6:
            print("Usage: python -m app.cli create-admin <phone> <password> <first_name> <last_name>")
            sys.exit(1)

        _, _, phone, password, first_name, last_name = sys.argv
        asyncio.run(create_admin(phone, password, first_name, last_name))
    else:
        print(f"Unknown command: {command}")
        usage()
        sys.exit(1)


if __name__ == "__main__":
    main()
