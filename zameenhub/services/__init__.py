"""
Service layer for business logic.
"""

from zameenhub.services.auth import AuthService, check_sign_in_gate
from zameenhub.services.approval import ApprovalService
from zameenhub.services.account import AccountService
from zameenhub.services.favorites import FavoriteService, FavoritesMergeService, MergeResult
from zameenhub.services.image import ImageService
from zameenhub.services.notifications import ApprovalNotifier, ApprovalEvent, Subscription
from zameenhub.services.property import PropertyService
from zameenhub.services.error_handler import ErrorHandlerService

__all__ = [
    "AuthService",
    "check_sign_in_gate",
    "ApprovalService",
    "AccountService",
    "FavoriteService",
    "FavoritesMergeService",
    "MergeResult",
    "ImageService",
    "ApprovalNotifier",
    "ApprovalEvent",
    "Subscription",
    "PropertyService",
    "ErrorHandlerService",
]
