"""
Database models for the ZameenHub API.
"""

from zameenhub.models.user import User
from zameenhub.models.profile import Profile, UserRole, ApprovalStatus
from zameenhub.models.property import Property, PropertyType, PropertyStatus, FurnishingStatus
from zameenhub.models.image import PropertyImage
from zameenhub.models.favorite import Favorite, Contact

__all__ = [
    "User",
    "Profile",
    "UserRole",
    "ApprovalStatus",
    "Property",
    "PropertyType",
    "PropertyStatus",
    "FurnishingStatus",
    "PropertyImage",
    "Favorite",
    "Contact",
]
