"""
Repository layer for data access operations.
"""

from zameenhub.repositories.base import BaseRepository
from zameenhub.repositories.user import UserRepository, ProfileRepository
from zameenhub.repositories.property import PropertyRepository, PropertySearchFilters, ListingSort
from zameenhub.repositories.image import ImageRepository
from zameenhub.repositories.favorite import FavoriteRepository, ContactRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "ProfileRepository",
    "PropertyRepository",
    "PropertySearchFilters",
    "ListingSort",
    "ImageRepository",
    "FavoriteRepository",
    "ContactRepository",
]
