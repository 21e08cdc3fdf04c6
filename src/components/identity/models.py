from dataclasses import dataclass

from src.domain.entities import User


@dataclass
class RegisterInput:
    registration_number: str
    fullname: str
    username: str
    email: str
    password: str


@dataclass
class LoginInput:
    email: str
    password: str


@dataclass
class UpdateProfileInput:
    """``None`` leaves a field unchanged."""

    actor: User
    fullname: str | None = None
    bio: str | None = None
    skills: list[str] | None = None
    social_links: dict[str, str] | None = None


@dataclass
class SetAvatarInput:
    actor: User
    filename: str
    data: bytes


@dataclass
class ListUsersInput:
    actor: User


@dataclass
class ChangeRoleInput:
    actor: User
    username: str
    role: str


@dataclass
class ChangePasswordInput:
    actor: User
    current_password: str
    new_password: str


@dataclass
class DeleteUserInput:
    actor: User
    username: str


@dataclass
class LoginOutput:
    user: User
    token: str
