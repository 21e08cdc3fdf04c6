"""
Identity component - registration, login, profiles and role management.
"""

from .component import (
    run_change_password,
    run_change_role,
    run_delete_user,
    run_list_users,
    run_login,
    run_register,
    run_set_avatar,
    run_update_profile,
)
from .models import (
    ChangePasswordInput,
    ChangeRoleInput,
    DeleteUserInput,
    ListUsersInput,
    LoginInput,
    LoginOutput,
    RegisterInput,
    SetAvatarInput,
    UpdateProfileInput,
)
from .ports import AuthAdapterPort, BlobStorePort, ClockPort, ContentRepoPort, UserRepoPort

__all__ = [
    # Entry points
    "run_change_password",
    "run_change_role",
    "run_delete_user",
    "run_list_users",
    "run_login",
    "run_register",
    "run_set_avatar",
    "run_update_profile",
    # Input/Output models
    "ChangePasswordInput",
    "ChangeRoleInput",
    "DeleteUserInput",
    "ListUsersInput",
    "LoginInput",
    "LoginOutput",
    "RegisterInput",
    "SetAvatarInput",
    "UpdateProfileInput",
    # Ports
    "AuthAdapterPort",
    "BlobStorePort",
    "ClockPort",
    "ContentRepoPort",
    "UserRepoPort",
]
