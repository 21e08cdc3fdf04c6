from uuid import uuid4

from src.domain.entities import Blog, Comment, ContentRef
from src.domain.policy import PolicyEngine
from src.rules.models import AbacRule


def _blog(author_id, status="PENDING"):
    reviewer = uuid4() if status != "PENDING" else None
    return Blog(author_id=author_id, title="T", body="B", status=status, reviewer_id=reviewer)


def test_public_permissions_need_no_user(policy):
    assert policy.check_permission(None, "content:read_approved")
    assert policy.check_permission(None, "profile:read")
    assert not policy.check_permission(None, "content:create")


def test_admin_wildcard(policy, admin, alice):
    blog = _blog(alice.id)
    assert policy.is_admin(admin)
    assert policy.can_review(admin)
    assert policy.can_edit(admin, blog)
    assert policy.can_delete(admin, blog)
    assert policy.check_permission(admin, "anything:at_all")


def test_members_get_role_permissions(policy, alice, user_factory):
    alumni = user_factory("ALUMNI", "olduser")
    for user in (alice, alumni):
        assert policy.check_permission(user, "content:create")
        assert policy.check_permission(user, "reaction:like")
        assert policy.check_permission(user, "event:join")
        assert not policy.is_admin(user)


def test_ownership_grants_edit_and_delete(policy, alice, bob):
    blog = _blog(alice.id)
    assert policy.can_edit(alice, blog)
    assert policy.can_delete(alice, blog)
    assert not policy.can_edit(bob, blog)
    assert not policy.can_delete(bob, blog)


def test_comment_delete_by_owner_only(policy, alice, bob):
    comment = Comment(author_id=bob.id, content="hi", target=ContentRef(kind="blog", id=uuid4()))
    assert policy.can_delete(bob, comment)
    assert not policy.can_delete(alice, comment)


def test_visibility(policy, admin, alice, bob):
    pending = _blog(alice.id)
    approved = _blog(alice.id, status="APPROVED")
    rejected = _blog(alice.id, status="REJECTED")

    assert policy.can_view(None, approved)
    assert policy.can_view(bob, approved)

    for item in (pending, rejected):
        assert not policy.can_view(None, item)
        assert not policy.can_view(bob, item)
        assert policy.can_view(alice, item)
        assert policy.can_view(admin, item)


def test_role_in_narrows_ownership(policy, alice, user_factory):
    rules = policy.rules.model_copy(deep=True)
    rules.abac.ownership_rules.append(
        AbacRule(
            if_condition={"owns_resource": True, "role_in": ["ALUMNI"]},
            allow=["content:feature"],
        )
    )
    narrowed = PolicyEngine(rules)
    alumni = user_factory("ALUMNI", "olduser")

    assert narrowed.check_permission(alumni, "content:feature", _blog(alumni.id))
    assert not narrowed.check_permission(alice, "content:feature", _blog(alice.id))
    assert not narrowed.check_permission(alumni, "content:feature", _blog(alice.id))


def test_comment_visibility(policy, admin, alice, bob):
    target = ContentRef(kind="blog", id=uuid4())
    pending = Comment(author_id=bob.id, content="hi", target=target)
    approved = pending.model_copy(update={"status": "APPROVED", "reviewer_id": admin.id})

    assert policy.can_view_comment(None, approved)
    assert policy.can_view_comment(alice, approved)
    assert policy.can_view_comment(bob, pending)
    assert policy.can_view_comment(admin, pending)
    assert not policy.can_view_comment(alice, pending)
    assert not policy.can_view_comment(None, pending)
