"""
User and profile repositories for identities, roles and dealer approval.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc
from sqlalchemy.orm import selectinload
from typing import Optional, List, Dict, Any
import uuid
import logging

from zameenhub.repositories.base import BaseRepository
from zameenhub.models.user import User
from zameenhub.models.profile import Profile, UserRole, ApprovalStatus

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """
    Repository for identities. Creates the user and its profile together.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    def _load_options(self) -> tuple:
        # Profile.user is not filled in when the profile arrives through User.profile,
        # and ProfileResponse reads the email through it
        return (selectinload(User.profile).selectinload(Profile.user),)

    async def create_user(self, user_data: Dict[str, Any], profile_data: Dict[str, Any]) -> User:
        """
        Create a new user with email validation, password hashing and its profile.

        Args:
            user_data: Must include email and password
            profile_data: Profile fields (role, approval_status, full_name, ...)

        Returns:
            Created user with profile loaded

        Raises:
            ValueError: If validation fails or the email is taken
        """
        try:
            email = User.normalize_email(user_data["email"])

            existing_user = await self.get_by_email(email)
            if existing_user:
                raise ValueError(f"User with email {email} already exists")

            hashed_password = User.hash_password(user_data["password"])

            user = User(
                email=email,
                hashed_password=hashed_password,
                is_active=user_data.get("is_active", True)
            )
            self.db.add(user)
            # Profile shares the identity id
            await self.db.flush()
            self.db.add(Profile(id=user.id, **profile_data))
            await self.db.commit()

            created_user = await self.get_by_id(user.id)
            logger.info(f"Created user: {created_user.email} (ID: {created_user.id})")
            return created_user
        except ValueError as e:
            await self.db.rollback()
            logger.error(f"User validation failed: {e}")
            raise
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to create user: {e}")
            raise

    async def get_by_email(self, email: str) -> Optional[User]:
        """
        Get user by email address.

        Args:
            email: Email address to search for

        Returns:
            User instance if found, None otherwise
        """
        try:
            normalized_email = email.lower().strip()
            result = await self.db.execute(
                select(User)
                .where(User.email == normalized_email)
                .options(*self._load_options())
                .execution_options(populate_existing=True)
            )
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error(f"Failed to get user by email {email}: {e}")
            raise

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Check credentials. Returns None for unknown email or wrong password.
        """
        user = await self.get_by_email(email)

        if not user:
            logger.debug(f"Authentication failed: user {email} not found")
            return None

        if not user.verify_password(password):
            logger.debug(f"Authentication failed: invalid password for {email}")
            return None

        return user


class ProfileRepository(BaseRepository[Profile]):
    """
    Repository for profiles: self-service fields, roles and dealer approval.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Profile, db)

    async def list_profiles(
        self,
        role: Optional[UserRole] = None,
        approval_status: Optional[ApprovalStatus] = None,
        skip: int = 0,
        limit: Optional[int] = None
    ) -> List[Profile]:
        """
        List profiles newest first, optionally narrowed by role and approval state.
        """
        try:
            query = select(Profile).execution_options(populate_existing=True)
            if role is not None:
                query = query.where(Profile.role == role)
            if approval_status is not None:
                query = query.where(Profile.approval_status == approval_status)
            query = query.order_by(desc(Profile.created_at))

            if skip:
                query = query.offset(skip)
            if limit is not None:
                query = query.limit(limit)

            result = await self.db.execute(query)
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to list profiles: {e}")
            raise

    async def count_by_role(self) -> Dict[str, int]:
        result = await self.db.execute(
            select(Profile.role, func.count(Profile.id)).group_by(Profile.role)
        )
        counts = {role.value: 0 for role in UserRole}
        for role, count in result.all():
            counts[role.value] = count
        return counts

    async def count_dealers(self, approval_status: ApprovalStatus) -> int:
        return await self.count(role=UserRole.DEALER, approval_status=approval_status)

    async def delete_identity(self, profile_id: uuid.UUID) -> bool:
        """
        Delete the user behind a profile. Everything owned by it cascades.
        """
        return await UserRepository(self.db).delete(profile_id)
