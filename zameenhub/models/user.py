"""
Sign-in identity. The profile, listings, images, favorites and contact log
of an account all hang off this row and are removed with it.
"""

from sqlalchemy import String, Boolean
from sqlalchemy.orm import Mapped, mapped_column, relationship
from passlib.context import CryptContext
from email_validator import validate_email, EmailNotValidError
from typing import Optional, TYPE_CHECKING

from zameenhub.database import Base

if TYPE_CHECKING:
    from zameenhub.models.profile import Profile

MIN_PASSWORD_LENGTH = 8

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class User(Base):
    """Credentials for one account; ``Profile.id`` equals ``User.id``."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    profile: Mapped[Optional["Profile"]] = relationship(
        "Profile",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"

    @staticmethod
    def normalize_email(email: str) -> str:
        """
        Syntax-check an address and return its lower-cased normal form.

        Sign-in lookups compare lower-cased addresses, so
        ``Seeker@Example.com`` and ``seeker@example.com`` are one account.

        Raises:
            ValueError: If the address is not valid
        """
        try:
            return validate_email(email, check_deliverability=False).normalized.lower()
        except EmailNotValidError as e:
            raise ValueError(f"Invalid email format: {e}")

    @staticmethod
    def hash_password(password: str) -> str:
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
        return pwd_context.hash(password)

    def verify_password(self, password: str) -> bool:
        return pwd_context.verify(password, self.hashed_password)
