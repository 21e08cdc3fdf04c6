import logging
import re
from typing import Any, cast, get_args

from pydantic import ValidationError as PydanticValidationError

from src.domain.entities import Event, RoleType, User
from src.domain.errors import (
    DependencyFailure,
    Forbidden,
    NotFound,
    Unauthenticated,
    ValidationError,
    describe_pydantic_error,
)
from src.domain.policy import PolicyEngine
from src.domain.uploads import validate_image_upload
from src.rules.models import Rules

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

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
USERNAME_RE = re.compile(r"^[a-z0-9_.-]{3,32}$")


def _rebuild(user: User, **changes: Any) -> User:
    try:
        return User.model_validate({**user.model_dump(), **changes})
    except PydanticValidationError as e:
        raise ValidationError(describe_pydantic_error(e)) from e


def _check_password_length(password: str, rules: Rules) -> None:
    min_len = rules.identity.password_min_length
    if len(password) < min_len:
        raise ValidationError(f"Password must be at least {min_len} characters")


def run_register(
    inp: RegisterInput,
    *,
    user_repo: UserRepoPort,
    auth_adapter: AuthAdapterPort,
    rules: Rules,
    clock: ClockPort,
) -> User:
    fields = {
        "registration_number": inp.registration_number.strip(),
        "fullname": inp.fullname.strip(),
        "username": inp.username.strip().lower(),
        "email": inp.email.strip().lower(),
    }
    missing = [name for name, value in fields.items() if not value]
    if missing or not inp.password:
        raise ValidationError("All fields are required")

    if not EMAIL_RE.match(fields["email"]):
        raise ValidationError("Invalid email address")
    if not USERNAME_RE.match(fields["username"]):
        raise ValidationError(
            "Username must be 3-32 characters of lowercase letters, digits, '.', '_' or '-'"
        )
    _check_password_length(inp.password, rules)

    if user_repo.get_by_email(fields["email"]) or user_repo.get_by_username(fields["username"]):
        raise ValidationError("User with this email or username already exists")

    now = clock.now_utc()
    user = User(
        **fields,
        password_hash=auth_adapter.hash_password(inp.password),
        role="USER",
        created_at=now,
        updated_at=now,
    )
    # Registration number clashes are caught by the store's unique index.
    user_repo.save(user)
    logger.info("Registered user %s", user.id)
    return user


def run_login(
    inp: LoginInput,
    *,
    user_repo: UserRepoPort,
    auth_adapter: AuthAdapterPort,
    rules: Rules,
) -> LoginOutput:
    user = user_repo.get_by_email(inp.email.strip().lower())
    if not user or not auth_adapter.verify_password(inp.password, user.password_hash):
        raise Unauthenticated("Invalid credentials")

    token = auth_adapter.create_token(user.id, rules.identity.token_ttl_minutes)
    return LoginOutput(user=user, token=token)


def run_change_password(
    inp: ChangePasswordInput,
    *,
    user_repo: UserRepoPort,
    auth_adapter: AuthAdapterPort,
    rules: Rules,
    clock: ClockPort,
) -> User:
    """Re-authenticates with the current password before storing a new hash."""
    if not inp.current_password or not inp.new_password:
        raise ValidationError("Current and new password are required")
    if not auth_adapter.verify_password(inp.current_password, inp.actor.password_hash):
        raise Unauthenticated("Current password is incorrect")
    _check_password_length(inp.new_password, rules)

    updated = _rebuild(
        inp.actor,
        password_hash=auth_adapter.hash_password(inp.new_password),
        updated_at=clock.now_utc(),
    )
    user_repo.save(updated)
    logger.info("Password changed for %s", updated.id)
    return updated


def run_update_profile(
    inp: UpdateProfileInput,
    *,
    user_repo: UserRepoPort,
    policy: PolicyEngine,
    clock: ClockPort,
) -> User:
    if not policy.check_permission(inp.actor, "profile:edit_own"):
        raise Forbidden("You are not allowed to edit your profile")

    changes: dict[str, Any] = {}
    if inp.fullname is not None:
        if not inp.fullname.strip():
            raise ValidationError("Full name cannot be empty")
        changes["fullname"] = inp.fullname.strip()
    if inp.bio is not None:
        changes["bio"] = inp.bio.strip()
    if inp.skills is not None:
        changes["skills"] = inp.skills
    if inp.social_links is not None:
        # Empty values clear a link
        links = {k: v.strip() for k, v in inp.social_links.items()}
        changes["social_links"] = {k: v for k, v in links.items() if v}

    if not changes:
        return inp.actor

    updated = _rebuild(inp.actor, **changes, updated_at=clock.now_utc())
    user_repo.save(updated)
    return updated


def run_set_avatar(
    inp: SetAvatarInput,
    *,
    user_repo: UserRepoPort,
    blobs: BlobStorePort,
    rules: Rules,
    clock: ClockPort,
) -> User:
    validate_image_upload(inp.filename, inp.data, rules.uploads)
    url = blobs.upload(inp.filename, inp.data)

    updated = _rebuild(inp.actor, avatar=url, updated_at=clock.now_utc())
    user_repo.save(updated)

    if inp.actor.avatar:
        try:
            blobs.delete(inp.actor.avatar)
        except DependencyFailure:
            logger.warning("Orphaned avatar left behind: %s", inp.actor.avatar)
    return updated


def run_list_users(
    inp: ListUsersInput,
    *,
    user_repo: UserRepoPort,
    policy: PolicyEngine,
) -> list[User]:
    if not policy.is_admin(inp.actor):
        raise Forbidden("Only admins can list users")
    return user_repo.list_all()


def run_change_role(
    inp: ChangeRoleInput,
    *,
    user_repo: UserRepoPort,
    policy: PolicyEngine,
    clock: ClockPort,
) -> User:
    if not policy.is_admin(inp.actor):
        raise Forbidden("Only admins can change roles")

    role = (inp.role or "").strip().upper()
    if role not in get_args(RoleType):
        raise ValidationError(f"Invalid role: {inp.role}")

    target = user_repo.get_by_username(inp.username)
    if not target:
        raise NotFound("User not found")

    # Self-lockout check
    if target.id == inp.actor.id and role != "ADMIN":
        raise ValidationError("Cannot remove admin role from yourself")

    updated = _rebuild(target, role=cast(RoleType, role), updated_at=clock.now_utc())
    user_repo.save(updated)
    logger.info("Role of %s changed to %s by %s", target.id, role, inp.actor.id)
    return updated


def run_delete_user(
    inp: DeleteUserInput,
    *,
    user_repo: UserRepoPort,
    content_repo: ContentRepoPort,
    policy: PolicyEngine,
    blobs: BlobStorePort,
) -> User:
    """
    Remove a member and everything they authored. Admin only.

    Their blogs, projects, events, comments and likes go, along with the
    reactions on them. They leave every event they joined and stop being a
    winner anywhere. Reviews they made stay, re-attributed to the deleting
    admin. Uploaded files are dropped after the rows.
    """
    if not policy.is_admin(inp.actor):
        raise Forbidden("Only admins can delete users")

    target = user_repo.get_by_username(inp.username)
    if not target:
        raise NotFound("User not found")
    if target.id == inp.actor.id:
        raise ValidationError("Cannot delete yourself")

    events = content_repo.list_items("event", author_id=target.id)
    files = [e.image_url for e in events if isinstance(e, Event) and e.image_url]
    if target.avatar:
        files.append(target.avatar)

    if not user_repo.delete(target.id, reassign_reviews_to=inp.actor.id):
        raise NotFound("User not found")
    logger.info("User %s deleted by %s", target.id, inp.actor.id)

    for url in files:
        try:
            blobs.delete(url)
        except DependencyFailure:
            logger.warning("Orphaned upload left behind: %s", url)
    return target
