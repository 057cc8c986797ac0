"""
Database management commands.

    zameenhub-manage create-tables
    zameenhub-manage reset
    zameenhub-manage create-admin --email admin@example.com --password ... --full-name "Site Admin"

Admins cannot sign up through the API, so the first one is created here.
"""

from typing import Optional
import argparse
import asyncio
import logging
import sys

from zameenhub.config import Settings, get_settings
from zameenhub.database import Database
from zameenhub.models.profile import UserRole
from zameenhub.models.user import User
from zameenhub.repositories.user import UserRepository

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


class DatabaseManager:
    """Schema and bootstrap operations against one Database."""

    def __init__(self, settings: Optional[Settings] = None, database: Optional[Database] = None):
        self.settings = settings or get_settings()
        self.database = database or Database(self.settings)

    async def create_tables(self) -> None:
        await self.database.create_tables()

    async def reset_database(self) -> None:
        """Drop and recreate every table. Refused in production."""
        await self.database.drop_tables()
        await self.database.create_tables()
        logger.info("Database reset completed")

    async def create_admin(self, email: str, password: str, full_name: str, phone: Optional[str] = None) -> User:
        """
        Create an admin account, or return the existing account if the email is taken.
        """
        async with self.database.session_factory() as session:
            user_repo = UserRepository(session)
            existing = await user_repo.get_by_email(email)
            if existing:
                logger.info(f"User {email} already exists, skipping admin creation")
                return existing

            user = await user_repo.create_user(
                {"email": email, "password": password},
                {"full_name": full_name, "phone": phone, "role": UserRole.ADMIN}
            )
            logger.info(f"Admin created: {user.email} (ID: {user.id})")
            return user

    async def close(self) -> None:
        await self.database.dispose()


async def _run(args: argparse.Namespace) -> None:
    manager = DatabaseManager()
    try:
        if args.command == "create-tables":
            await manager.create_tables()
        elif args.command == "reset":
            await manager.reset_database()
        elif args.command == "create-admin":
            await manager.create_admin(args.email, args.password, args.full_name, args.phone)
    finally:
        await manager.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="ZameenHub database management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("create-tables", help="Create all tables")
    subparsers.add_parser("reset", help="Drop and recreate all tables")

    admin_parser = subparsers.add_parser("create-admin", help="Create an admin account")
    admin_parser.add_argument("--email", required=True)
    admin_parser.add_argument("--password", required=True)
    admin_parser.add_argument("--full-name", required=True)
    admin_parser.add_argument("--phone")

    return parser


def main(argv: Optional[list] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        asyncio.run(_run(args))
    except (ValueError, RuntimeError) as e:
        logger.error(f"Command failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
