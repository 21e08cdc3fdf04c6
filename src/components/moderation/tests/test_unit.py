"""
Moderation component unit tests.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from uuid import UUID, uuid4

import pytest

from src.adapters.clock import FixedClock
from src.adapters.memory import InMemoryCommentRepo, InMemoryContentRepo, InMemoryStore
from src.components.moderation import (
    ReviewCommentInput,
    ReviewContentInput,
    run_review_comment,
    run_review_content,
)
from src.domain.entities import Blog, Comment, ContentRef, ModerationStatus, User
from src.domain.errors import Forbidden, InvalidStateTransition, NotFound
from src.domain.policy import PolicyEngine
from src.rules.loader import load_rules


class RacingContentRepo(InMemoryContentRepo):
    """Another reviewer always gets there first."""

    def set_review(
        self, ref: ContentRef, status: ModerationStatus, reviewer_id: UUID, *, at: datetime
    ) -> bool:
        super().set_review(ref, "REJECTED", uuid4(), at=at)
        return False


def _user(role: str, name: str) -> User:
    return User(
        registration_number=f"REG-{name}",
        fullname=name.title(),
        username=name,
        email=f"{name}@example.com",
        password_hash="hash",
        role=role,
    )


# --- Fixtures ---


@pytest.fixture
def policy() -> PolicyEngine:
    return PolicyEngine(load_rules(Path("rules.yaml").resolve()))


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def content_repo(store: InMemoryStore) -> InMemoryContentRepo:
    return InMemoryContentRepo(store)


@pytest.fixture
def comment_repo(store: InMemoryStore) -> InMemoryCommentRepo:
    return InMemoryCommentRepo(store)


@pytest.fixture
def admin() -> User:
    return _user("ADMIN", "admin")


@pytest.fixture
def alice() -> User:
    return _user("USER", "alice")


@pytest.fixture
def blog(content_repo: InMemoryContentRepo, alice: User) -> Blog:
    return content_repo.add(Blog(author_id=alice.id, title="Hello", body="World"))


@pytest.fixture
def comment(comment_repo: InMemoryCommentRepo, blog: Blog, alice: User) -> Comment:
    return comment_repo.add(Comment(author_id=alice.id, content="First!", target=blog.ref))


# --- Content ---


class TestReviewContent:
    def test_approve_sets_reviewer(self, blog, content_repo, policy, admin) -> None:
        clock = FixedClock(blog.updated_at)
        later = clock.advance(hours=1)
        result = run_review_content(
            ReviewContentInput(actor=admin, ref=blog.ref, status="approved"),
            repo=content_repo,
            policy=policy,
            clock=clock,
        )

        assert result.status == "APPROVED"
        assert result.reviewer_id == admin.id
        stored = content_repo.get(blog.ref)
        assert stored.status == "APPROVED"
        assert stored.reviewer_id == admin.id
        assert result.updated_at == stored.updated_at == later

    def test_second_review_fails(self, blog, content_repo, policy, admin) -> None:
        run_review_content(
            ReviewContentInput(actor=admin, ref=blog.ref, status="REJECTED"),
            repo=content_repo,
            policy=policy,
            clock=FixedClock(),
        )
        with pytest.raises(InvalidStateTransition):
            run_review_content(
                ReviewContentInput(actor=admin, ref=blog.ref, status="APPROVED"),
                repo=content_repo,
                policy=policy,
                clock=FixedClock(),
            )
        assert content_repo.get(blog.ref).status == "REJECTED"

    @pytest.mark.parametrize("status", [None, "PENDING", "archived"])
    def test_non_decisions_rejected(self, blog, content_repo, policy, admin, status) -> None:
        with pytest.raises(InvalidStateTransition):
            run_review_content(
                ReviewContentInput(actor=admin, ref=blog.ref, status=status),
                repo=content_repo,
                policy=policy,
                clock=FixedClock(),
            )
        assert content_repo.get(blog.ref).status == "PENDING"

    def test_non_admin_forbidden_before_lookup(self, content_repo, policy, alice) -> None:
        with pytest.raises(Forbidden):
            run_review_content(
                ReviewContentInput(
                    actor=alice, ref=ContentRef(kind="blog", id=uuid4()), status="APPROVED"
                ),
                repo=content_repo,
                policy=policy,
                clock=FixedClock(),
            )

    def test_missing_item(self, content_repo, policy, admin) -> None:
        with pytest.raises(NotFound, match="Project not found"):
            run_review_content(
                ReviewContentInput(
                    actor=admin, ref=ContentRef(kind="project", id=uuid4()), status="APPROVED"
                ),
                repo=content_repo,
                policy=policy,
                clock=FixedClock(),
            )

    def test_lost_race_is_a_transition_error(self, store, policy, admin, alice) -> None:
        repo = RacingContentRepo(store)
        blog = repo.add(Blog(author_id=alice.id, title="Hello", body="World"))

        with pytest.raises(InvalidStateTransition, match="no longer PENDING"):
            run_review_content(
                ReviewContentInput(actor=admin, ref=blog.ref, status="APPROVED"),
                repo=repo,
                policy=policy,
                clock=FixedClock(),
            )
        assert repo.get(blog.ref).status == "REJECTED"


# --- Comments ---


class TestReviewComment:
    def test_approve_comment(self, comment, comment_repo, policy, admin) -> None:
        result = run_review_comment(
            ReviewCommentInput(actor=admin, comment_id=comment.id, status="APPROVED"),
            repo=comment_repo,
            policy=policy,
        )
        assert result.status == "APPROVED"
        assert comment_repo.get(comment.id).reviewer_id == admin.id

    def test_comment_review_is_final(self, comment, comment_repo, policy, admin) -> None:
        inp = ReviewCommentInput(actor=admin, comment_id=comment.id, status="REJECTED")
        run_review_comment(inp, repo=comment_repo, policy=policy)
        with pytest.raises(InvalidStateTransition):
            run_review_comment(inp, repo=comment_repo, policy=policy)

    def test_author_cannot_review_own_comment(self, comment, comment_repo, policy, alice):
        with pytest.raises(Forbidden):
            run_review_comment(
                ReviewCommentInput(actor=alice, comment_id=comment.id, status="APPROVED"),
                repo=comment_repo,
                policy=policy,
            )

    def test_missing_comment(self, comment_repo, policy, admin) -> None:
        with pytest.raises(NotFound, match="Comment not found"):
            run_review_comment(
                ReviewCommentInput(actor=admin, comment_id=uuid4(), status="APPROVED"),
                repo=comment_repo,
                policy=policy,
            )
