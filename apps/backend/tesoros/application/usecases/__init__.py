"""
Use Cases Layer (Profile Store operations)

Usage
-----
    from tesoros.application.usecases import RegisterProfileUseCase, ModerateUserUseCase
"""

from .get_my_profile import GetMyProfileUseCase
from .list_users import ListUsersUseCase
from .moderate_user import ModerateUserUseCase, build_moderation_notification
from .notifications import ListMyNotificationsUseCase, MarkNotificationReadUseCase
from .profile_results import (
    ModerationResult,
    NotificationListResult,
    ProfileErrorCode,
    ProfileListResult,
    ProfileResult,
    ProfileStoreError,
)
from .register_profile import RegisterProfileInput, RegisterProfileUseCase
from .update_my_profile import UpdateMyProfileUseCase, UpdateProfileInput

__all__ = [
    "GetMyProfileUseCase",
    "ListUsersUseCase",
    "ModerateUserUseCase",
    "build_moderation_notification",
    "ListMyNotificationsUseCase",
    "MarkNotificationReadUseCase",
    "ModerationResult",
    "NotificationListResult",
    "ProfileErrorCode",
    "ProfileListResult",
    "ProfileResult",
    "ProfileStoreError",
    "RegisterProfileInput",
    "RegisterProfileUseCase",
    "UpdateMyProfileUseCase",
    "UpdateProfileInput",
]
