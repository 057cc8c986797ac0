"""
Test configuration and fixtures for the ZameenHub API.
Provides database fixtures, test data factories, and common test utilities.

Each test gets its own SQLite database file and media directory, and the
application is built with ``create_app`` around them.
"""

import io
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator, Optional

import pytest
from httpx import AsyncClient, ASGITransport
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession

from zameenhub.config import Settings
from zameenhub.database import Database
from zameenhub.main import create_app
from zameenhub.models.profile import Profile, UserRole, ApprovalStatus
from zameenhub.models.property import Property, PropertyType, FurnishingStatus
from zameenhub.repositories.user import UserRepository, ProfileRepository
from zameenhub.repositories.property import PropertyRepository
from zameenhub.services.auth import AuthService
from zameenhub.services.approval import ApprovalService
from zameenhub.services.favorites import FavoriteService, FavoritesMergeService
from zameenhub.services.notifications import ApprovalNotifier
from zameenhub.services.property import PropertyService
from zameenhub.utils.auth import create_access_token

DEFAULT_PASSWORD = "testpassword123"


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway database and media directory."""
    return Settings(
        environment="testing",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        upload_dir=str(tmp_path / "uploads"),
        notification_queue_size=10,
    )


@pytest.fixture
async def database(settings: Settings) -> AsyncGenerator[Database, None]:
    """Database with the schema created."""
    database = Database(settings)
    await database.create_tables()
    yield database
    await database.dispose()


@pytest.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with database.session_factory() as session:
        yield session


@pytest.fixture
def app(settings: Settings, database: Database):
    return create_app(settings=settings, database=database)


@pytest.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async client talking to the application in-process."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
def notifier() -> ApprovalNotifier:
    return ApprovalNotifier(queue_size=10)


# Service fixtures
@pytest.fixture
def auth_service(db_session: AsyncSession, settings: Settings) -> AuthService:
    return AuthService(db_session, settings)


@pytest.fixture
def property_service(db_session: AsyncSession, settings: Settings) -> PropertyService:
    return PropertyService(db_session, settings)


@pytest.fixture
def approval_service(db_session: AsyncSession, notifier: ApprovalNotifier) -> ApprovalService:
    return ApprovalService(db_session, notifier)


@pytest.fixture
def favorite_service(db_session: AsyncSession) -> FavoriteService:
    return FavoriteService(db_session)


@pytest.fixture
def merge_service(db_session: AsyncSession) -> FavoritesMergeService:
    return FavoritesMergeService(db_session)


# Test data factories
class UserFactory:
    """Factory for creating test accounts. Returns the profile."""

    @staticmethod
    async def create_user(
        db_session: AsyncSession,
        email: Optional[str] = None,
        password: str = DEFAULT_PASSWORD,
        full_name: str = "Test User",
        role: UserRole = UserRole.USER,
        approval_status: Optional[ApprovalStatus] = None,
        phone: Optional[str] = "+92 300 1234567",
        agency_name: Optional[str] = None,
        is_active: bool = True
    ) -> Profile:
        user = await UserRepository(db_session).create_user(
            {
                "email": email or f"test{uuid.uuid4().hex[:8]}@example.com",
                "password": password,
                "is_active": is_active,
            },
            {
                "full_name": full_name,
                "phone": phone,
                "role": role,
                "approval_status": approval_status,
                "agency_name": agency_name,
            }
        )
        return await ProfileRepository(db_session).get_by_id(user.id)


class PropertyFactory:
    """Factory for creating test properties."""

    @staticmethod
    async def create_property(
        db_session: AsyncSession,
        owner_id: uuid.UUID,
        title: str = "Test Property",
        property_type: PropertyType = PropertyType.HOUSE,
        price: Optional[Decimal] = Decimal("15000000.00"),
        city: str = "Lahore",
        bedrooms: Optional[int] = 3,
        furnishing: Optional[FurnishingStatus] = None,
        approval_status: ApprovalStatus = ApprovalStatus.APPROVED,
        created_at: Optional[datetime] = None
    ) -> Property:
        data = {
            "owner_id": owner_id,
            "title": title,
            "property_type": property_type,
            "price": price,
            "city": city,
            "bedrooms": bedrooms,
            "furnishing": furnishing,
            "approval_status": approval_status,
        }
        if created_at is not None:
            data["created_at"] = created_at
        return await PropertyRepository(db_session).create(data)


def hours_ago(hours: int) -> datetime:
    return datetime.now(timezone.utc) - timedelta(hours=hours)


def auth_headers(profile: Profile) -> dict:
    """Bearer header for a profile."""
    token = create_access_token(user_id=profile.id, email=profile.email, role=profile.role)
    return {"Authorization": f"Bearer {token}"}


def make_image_bytes(image_format: str = "JPEG", size: tuple = (32, 24)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color=(180, 120, 60)).save(buffer, format=image_format)
    return buffer.getvalue()


# Account fixtures
@pytest.fixture
async def test_user(db_session: AsyncSession) -> Profile:
    return await UserFactory.create_user(db_session, email="seeker@example.com", full_name="Property Seeker")


@pytest.fixture
async def test_dealer(db_session: AsyncSession) -> Profile:
    """Approved dealer."""
    return await UserFactory.create_user(
        db_session,
        email="dealer@example.com",
        full_name="Approved Dealer",
        role=UserRole.DEALER,
        approval_status=ApprovalStatus.APPROVED,
        phone="+92 321 7654321",
        agency_name="Lahore Estates"
    )


@pytest.fixture
async def pending_dealer(db_session: AsyncSession) -> Profile:
    return await UserFactory.create_user(
        db_session,
        email="pending.dealer@example.com",
        full_name="Pending Dealer",
        role=UserRole.DEALER,
        approval_status=ApprovalStatus.PENDING
    )


@pytest.fixture
async def rejected_dealer(db_session: AsyncSession) -> Profile:
    return await UserFactory.create_user(
        db_session,
        email="rejected.dealer@example.com",
        full_name="Rejected Dealer",
        role=UserRole.DEALER,
        approval_status=ApprovalStatus.REJECTED
    )


@pytest.fixture
async def test_admin(db_session: AsyncSession) -> Profile:
    return await UserFactory.create_user(
        db_session,
        email="admin@example.com",
        full_name="Site Admin",
        role=UserRole.ADMIN
    )


# Property fixtures
@pytest.fixture
async def approved_property(db_session: AsyncSession, test_dealer: Profile) -> Property:
    return await PropertyFactory.create_property(
        db_session,
        test_dealer.id,
        title="Approved House in DHA",
        approval_status=ApprovalStatus.APPROVED
    )


@pytest.fixture
async def pending_property(db_session: AsyncSession, test_dealer: Profile) -> Property:
    return await PropertyFactory.create_property(
        db_session,
        test_dealer.id,
        title="Pending Apartment in Gulberg",
        property_type=PropertyType.APARTMENT,
        approval_status=ApprovalStatus.PENDING
    )
