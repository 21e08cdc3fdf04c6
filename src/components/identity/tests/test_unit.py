"""
Identity component unit tests.

Registration, login, profile edits, avatars and role administration.
"""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from uuid import UUID, uuid4

import pytest

from src.adapters.clock import FixedClock
from src.adapters.memory import InMemoryContentRepo, InMemoryUserRepo
from src.components.identity import (
    ChangePasswordInput,
    ChangeRoleInput,
    DeleteUserInput,
    ListUsersInput,
    LoginInput,
    RegisterInput,
    SetAvatarInput,
    UpdateProfileInput,
    run_change_password,
    run_change_role,
    run_delete_user,
    run_list_users,
    run_login,
    run_register,
    run_set_avatar,
    run_update_profile,
)
from src.domain.entities import Blog, Event, User
from src.domain.errors import (
    DependencyFailure,
    Forbidden,
    NotFound,
    Unauthenticated,
    ValidationError,
)
from src.domain.policy import PolicyEngine
from src.rules.loader import load_rules
from src.rules.models import Rules

# --- Mock Implementations ---


class MockAuthAdapter:
    def hash_password(self, plain: str) -> str:
        return f"hashed_{plain}"

    def verify_password(self, plain: str, hashed: str) -> bool:
        return hashed == f"hashed_{plain}"

    def create_token(self, user_id: UUID, ttl_minutes: int) -> str:
        return f"token_{user_id}_{ttl_minutes}"


class MockBlobStore:
    def __init__(self) -> None:
        self.blobs: dict[str, bytes] = {}
        self.fail_delete = False

    def upload(self, filename: str, data: bytes) -> str:
        url = f"/blobs/{len(self.blobs)}-{filename}"
        self.blobs[url] = data
        return url

    def delete(self, url: str) -> None:
        if self.fail_delete:
            raise DependencyFailure("blob store down")
        self.blobs.pop(url, None)


# --- Fixtures ---


@pytest.fixture
def rules() -> Rules:
    return load_rules(Path("rules.yaml").resolve())


@pytest.fixture
def policy(rules: Rules) -> PolicyEngine:
    return PolicyEngine(rules)


@pytest.fixture
def user_repo() -> InMemoryUserRepo:
    return InMemoryUserRepo()


@pytest.fixture
def auth_adapter() -> MockAuthAdapter:
    return MockAuthAdapter()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def register(user_repo, auth_adapter, rules, clock):
    def _register(**overrides: str) -> User:
        fields = {
            "registration_number": "2021CS001",
            "fullname": "Alice Liddell",
            "username": "alice",
            "email": "alice@example.com",
            "password": "wonderland",
        }
        fields.update(overrides)
        return run_register(
            RegisterInput(**fields),
            user_repo=user_repo,
            auth_adapter=auth_adapter,
            rules=rules,
            clock=clock,
        )

    return _register


@pytest.fixture
def alice(register) -> User:
    return register()


@pytest.fixture
def admin(user_repo, clock) -> User:
    user = User(
        registration_number="ADMIN-1",
        fullname="Admin",
        username="admin",
        email="admin@example.com",
        password_hash="hashed_adminpass",
        role="ADMIN",
        created_at=clock.now_utc(),
        updated_at=clock.now_utc(),
    )
    user_repo.save(user)
    return user


# --- Register ---


class TestRegister:
    def test_register_normalizes_and_hashes(self, register, user_repo) -> None:
        user = register(username="  Alice.L ", email="Alice@Example.COM")

        assert user.username == "alice.l"
        assert user.email == "alice@example.com"
        assert user.role == "USER"
        assert user.password_hash == "hashed_wonderland"
        assert user_repo.get_by_id(user.id) == user

    def test_missing_fields(self, register) -> None:
        with pytest.raises(ValidationError, match="required"):
            register(fullname="   ")

    def test_invalid_email(self, register) -> None:
        with pytest.raises(ValidationError, match="email"):
            register(email="not-an-email")

    def test_invalid_username(self, register) -> None:
        with pytest.raises(ValidationError, match="Username"):
            register(username="a b")

    def test_short_password(self, register, rules) -> None:
        with pytest.raises(ValidationError, match="at least"):
            register(password="x" * (rules.identity.password_min_length - 1))

    def test_duplicate_email_or_username(self, register, alice) -> None:
        with pytest.raises(ValidationError, match="already exists"):
            register(username="other", registration_number="X2")
        with pytest.raises(ValidationError, match="already exists"):
            register(email="other@example.com", registration_number="X3")

    def test_duplicate_registration_number(self, register, alice) -> None:
        with pytest.raises(ValidationError, match="already exists"):
            register(username="other", email="other@example.com")


# --- Login ---


class TestLogin:
    def test_login_success(self, alice, user_repo, auth_adapter, rules) -> None:
        result = run_login(
            LoginInput(email="ALICE@example.com", password="wonderland"),
            user_repo=user_repo,
            auth_adapter=auth_adapter,
            rules=rules,
        )
        assert result.user.id == alice.id
        assert result.token == f"token_{alice.id}_{rules.identity.token_ttl_minutes}"

    @pytest.mark.parametrize(
        "email,password",
        [("alice@example.com", "wrong-password"), ("nobody@example.com", "wonderland")],
    )
    def test_login_failure(self, alice, user_repo, auth_adapter, rules, email, password):
        with pytest.raises(Unauthenticated, match="Invalid credentials"):
            run_login(
                LoginInput(email=email, password=password),
                user_repo=user_repo,
                auth_adapter=auth_adapter,
                rules=rules,
            )


# --- Password ---


class TestChangePassword:
    @pytest.fixture
    def change(self, user_repo, auth_adapter, rules, clock):
        def _change(actor: User, current: str, new: str) -> User:
            return run_change_password(
                ChangePasswordInput(actor=actor, current_password=current, new_password=new),
                user_repo=user_repo,
                auth_adapter=auth_adapter,
                rules=rules,
                clock=clock,
            )

        return _change

    def test_rehashes_new_password(self, change, alice, user_repo, clock) -> None:
        later = clock.advance(minutes=1)
        updated = change(alice, "wonderland", "looking-glass")

        assert updated.password_hash == "hashed_looking-glass"
        assert updated.updated_at == later
        assert user_repo.get_by_id(alice.id).password_hash == "hashed_looking-glass"

    def test_wrong_current_password(self, change, alice, user_repo) -> None:
        with pytest.raises(Unauthenticated, match="incorrect"):
            change(alice, "guess", "looking-glass")
        assert user_repo.get_by_id(alice.id).password_hash == "hashed_wonderland"

    def test_new_password_rules(self, change, alice, rules) -> None:
        with pytest.raises(ValidationError, match="required"):
            change(alice, "wonderland", "")
        with pytest.raises(ValidationError, match="at least"):
            change(alice, "wonderland", "x" * (rules.identity.password_min_length - 1))


# --- Profile ---


class TestProfile:
    def test_partial_update(self, alice, user_repo, policy, clock) -> None:
        later = clock.advance(minutes=5)
        updated = run_update_profile(
            UpdateProfileInput(
                actor=alice,
                bio=" Curious ",
                skills=["python", "python", "sql"],
                social_links={"github": "https://github.com/alice", "twitter": " "},
            ),
            user_repo=user_repo,
            policy=policy,
            clock=clock,
        )

        assert updated.fullname == alice.fullname
        assert updated.bio == "Curious"
        assert updated.skills == ["python", "sql"]
        assert updated.social_links == {"github": "https://github.com/alice"}
        assert user_repo.get_by_id(alice.id).bio == "Curious"
        assert updated.updated_at == later
        assert updated.created_at == alice.created_at

    def test_unknown_social_platform(self, alice, user_repo, policy, clock) -> None:
        with pytest.raises(ValidationError, match="social_links"):
            run_update_profile(
                UpdateProfileInput(actor=alice, social_links={"myspace": "https://x"}),
                user_repo=user_repo,
                policy=policy,
                clock=clock,
            )

    def test_blank_fullname(self, alice, user_repo, policy, clock) -> None:
        with pytest.raises(ValidationError, match="Full name"):
            run_update_profile(
                UpdateProfileInput(actor=alice, fullname=""),
                user_repo=user_repo,
                policy=policy,
                clock=clock,
            )

    def test_avatar_replaces_previous(self, alice, user_repo, rules, clock) -> None:
        blobs = MockBlobStore()

        def upload(actor: User, name: str) -> User:
            return run_set_avatar(
                SetAvatarInput(actor=actor, filename=name, data=b"img"),
                user_repo=user_repo,
                blobs=blobs,
                rules=rules,
                clock=clock,
            )

        first = upload(alice, "me.png")
        second = upload(first, "me2.png")

        assert second.avatar != first.avatar
        assert list(blobs.blobs) == [second.avatar]
        assert user_repo.get_by_id(alice.id).avatar == second.avatar

    def test_avatar_validation(self, alice, user_repo, rules, clock) -> None:
        blobs = MockBlobStore()
        with pytest.raises(ValidationError):
            run_set_avatar(
                SetAvatarInput(actor=alice, filename="me.svg", data=b"<svg/>"),
                user_repo=user_repo,
                blobs=blobs,
                rules=rules,
                clock=clock,
            )
        assert blobs.blobs == {}


# --- Admin ---


class TestAdmin:
    def test_list_users_admin_only(self, admin, alice, user_repo, policy) -> None:
        users = run_list_users(ListUsersInput(actor=admin), user_repo=user_repo, policy=policy)
        assert [u.username for u in users] == ["admin", "alice"]

        with pytest.raises(Forbidden):
            run_list_users(ListUsersInput(actor=alice), user_repo=user_repo, policy=policy)

    def test_change_role(self, admin, alice, user_repo, policy, clock) -> None:
        updated = run_change_role(
            ChangeRoleInput(actor=admin, username="alice", role="alumni"),
            user_repo=user_repo,
            policy=policy,
            clock=clock,
        )
        assert updated.role == "ALUMNI"
        assert user_repo.get_by_username("alice").role == "ALUMNI"

    def test_change_role_errors(self, admin, alice, user_repo, policy, clock) -> None:
        def change(actor: User, username: str, role: str) -> User:
            return run_change_role(
                ChangeRoleInput(actor=actor, username=username, role=role),
                user_repo=user_repo,
                policy=policy,
                clock=clock,
            )

        with pytest.raises(Forbidden):
            change(alice, "alice", "ADMIN")
        with pytest.raises(ValidationError, match="Invalid role"):
            change(admin, "alice", "SUPERUSER")
        with pytest.raises(NotFound):
            change(admin, "nobody", "USER")
        with pytest.raises(ValidationError, match="yourself"):
            change(admin, "admin", "USER")


class TestDeleteUser:
    @pytest.fixture
    def content_repo(self, user_repo) -> InMemoryContentRepo:
        return InMemoryContentRepo(user_repo.store)

    @pytest.fixture
    def delete(self, user_repo, content_repo, policy):
        def _delete(actor: User, username: str, blobs: MockBlobStore | None = None) -> User:
            return run_delete_user(
                DeleteUserInput(actor=actor, username=username),
                user_repo=user_repo,
                content_repo=content_repo,
                policy=policy,
                blobs=blobs or MockBlobStore(),
            )

        return _delete

    def test_removes_user_content_and_uploads(
        self, delete, admin, register, user_repo, content_repo
    ) -> None:
        bob = register(username="bob", email="bob@example.com", registration_number="2021CS002")
        blobs = MockBlobStore()
        avatar = blobs.upload("bob.png", b"img")
        poster = blobs.upload("poster.png", b"img")
        user_repo.save(bob.model_copy(update={"avatar": avatar}))
        event = content_repo.add(
            Event(
                author_id=bob.id,
                title="Hack Night",
                description="Build things",
                date=datetime(2026, 6, 1, 18, tzinfo=UTC),
                venue="Lab 3",
                duration_minutes=120,
                image_url=poster,
            )
        )

        deleted = delete(admin, "bob", blobs)

        assert deleted.id == bob.id
        assert user_repo.get_by_username("bob") is None
        assert content_repo.get(event.ref) is None
        assert blobs.blobs == {}

    def test_reviews_move_to_deleting_admin(
        self, delete, admin, alice, user_repo, content_repo
    ) -> None:
        moderator = admin.model_copy(
            update={
                "id": uuid4(),
                "username": "moderator",
                "email": "mod@example.com",
                "registration_number": "ADMIN-2",
            }
        )
        user_repo.save(moderator)
        blog = content_repo.add(
            Blog(
                author_id=alice.id,
                title="Reviewed",
                body="Text",
                status="APPROVED",
                reviewer_id=moderator.id,
            )
        )

        delete(admin, "moderator")

        assert content_repo.get(blog.ref).reviewer_id == admin.id

    def test_blob_failure_does_not_undo_deletion(
        self, delete, admin, alice, user_repo, caplog
    ) -> None:
        blobs = MockBlobStore()
        user_repo.save(alice.model_copy(update={"avatar": blobs.upload("a.png", b"img")}))
        blobs.fail_delete = True

        with caplog.at_level("WARNING"):
            delete(admin, "alice", blobs)

        assert user_repo.get_by_username("alice") is None
        assert "Orphaned upload" in caplog.text

    def test_delete_user_errors(self, delete, admin, alice) -> None:
        with pytest.raises(Forbidden):
            delete(alice, "admin")
        with pytest.raises(NotFound):
            delete(admin, "nobody")
        with pytest.raises(ValidationError, match="yourself"):
            delete(admin, "admin")
