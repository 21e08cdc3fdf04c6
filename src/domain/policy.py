from typing import Any

from src.domain.entities import Comment, ContentItem, User
from src.rules.models import Rules


def resource_kind(resource: Any) -> str | None:
    if isinstance(resource, ContentItem):
        return resource.kind
    if isinstance(resource, Comment):
        return "comment"
    return None


class PolicyEngine:
    """
    Capability checks for every mutating or gated operation.

    ``check_permission`` is a pure predicate over (caller, action, resource);
    components call it once at entry instead of branching on roles themselves.
    """

    def __init__(self, rules: Rules):
        self.rules = rules

    def check_permission(
        self,
        user: User | None,
        action: str,
        resource: Any = None,
    ) -> bool:
        """
        Check if the user is allowed to perform the action on the resource.

        Order of precedence:
        1. Public Permissions (Global)
        2. Role-Based Access Control (RBAC)
        3. Attribute-Based Access Control (ABAC)
        """
        # 1. Public Permissions
        if action in self.rules.rbac.public_permissions:
            return True

        # If not public, we need a user
        if not user:
            return False

        # 2. RBAC
        allowed_actions = self.rules.rbac.roles.get(user.role, [])
        if "*" in allowed_actions or action in allowed_actions:
            return True
        # Scoped wildcards ("reaction:*" matches "reaction:like")
        if ":" in action and f"{action.split(':')[0]}:*" in allowed_actions:
            return True

        # 3. ABAC
        if resource is not None:
            for rule in self.rules.abac.ownership_rules:
                if action in rule.allow and self._evaluate_rule(rule.if_condition, user, resource):
                    return True

        return False

    def _evaluate_rule(self, condition: dict[str, Any], user: User, resource: Any) -> bool:
        """
        Evaluate condition predicates from rules.yaml.
        Supported predicates:
        - owns_resource: bool
        - kind_in: list[str]
        - role_in: list[str]
        """
        for predicate, args in condition.items():
            if predicate == "owns_resource":
                owner = getattr(resource, "author_id", None)
                if bool(args) != (owner is not None and str(owner) == str(user.id)):
                    return False

            elif predicate == "kind_in":
                if resource_kind(resource) not in args:
                    return False

            elif predicate == "role_in":
                if user.role not in args:
                    return False

            else:
                # Unknown predicates never grant access
                return False

        return True

    def is_admin(self, user: User | None) -> bool:
        return user is not None and self.check_permission(user, "moderation:review")

    def can_review(self, user: User | None) -> bool:
        return self.is_admin(user)

    def can_edit(self, user: User | None, resource: ContentItem) -> bool:
        return self.check_permission(user, "content:edit", resource)

    def can_delete(self, user: User | None, resource: ContentItem | Comment) -> bool:
        action = "comment:delete" if isinstance(resource, Comment) else "content:delete"
        return self.check_permission(user, action, resource)

    def can_view(self, user: User | None, item: ContentItem) -> bool:
        """Approved items are public; anything else only for its author or an admin."""
        if item.status == "APPROVED":
            return self.check_permission(user, "content:read_approved")
        return self.check_permission(user, "content:read_unapproved", item)

    def can_view_comment(self, user: User | None, comment: Comment) -> bool:
        """Same rule as content: pending and rejected comments are for their author and admins."""
        if comment.status == "APPROVED":
            return self.check_permission(user, "content:read_approved")
        return self.check_permission(user, "comment:read_unapproved", comment)
