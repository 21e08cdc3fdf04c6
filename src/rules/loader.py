import logging
from pathlib import Path
from typing import get_args

import yaml
from pydantic import ValidationError

from src.domain.entities import RoleType, TargetKind
from src.rules.models import Rules

logger = logging.getLogger(__name__)

KNOWN_ROLES = frozenset(get_args(RoleType))
KNOWN_KINDS = frozenset(get_args(TargetKind))
KNOWN_PREDICATES = frozenset({"owns_resource", "kind_in", "role_in"})


def check_consistency(rules: Rules) -> None:
    """Cross-field checks the schema alone cannot express."""
    unknown_roles = set(rules.rbac.roles) - KNOWN_ROLES
    if unknown_roles:
        raise ValueError(f"Rules rbac.roles has unknown roles: {sorted(unknown_roles)}")

    for i, rule in enumerate(rules.abac.ownership_rules):
        unknown = set(rule.if_condition) - KNOWN_PREDICATES
        if unknown:
            raise ValueError(f"Rules abac rule {i} has unknown predicates: {sorted(unknown)}")
        kinds = set(rule.if_condition.get("kind_in", ())) - KNOWN_KINDS
        if kinds:
            raise ValueError(f"Rules abac rule {i} has unknown kinds: {sorted(kinds)}")
        roles = set(rule.if_condition.get("role_in", ())) - KNOWN_ROLES
        if roles:
            raise ValueError(f"Rules abac rule {i} has unknown roles: {sorted(roles)}")

    bad_ext = [e for e in rules.uploads.allowlist_extensions if not e.startswith(".")]
    if bad_ext:
        raise ValueError(f"Rules uploads extensions must start with '.': {bad_ext}")


def load_rules(path: Path) -> Rules:
    """
    Load and validate the rules file.
    Raises FileNotFoundError if file missing.
    Raises ValueError if the YAML, the schema or the role and kind references are invalid.
    """
    if not path.exists():
        raise FileNotFoundError(f"Rules file not found at: {path}")

    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in rules file: {e}") from e

    try:
        rules = Rules.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Rules validation failed:\n{e}") from e

    check_consistency(rules)
    logger.info(
        "Rules %s v%s loaded from %s", rules.project.slug, rules.project.rules_version, path
    )
    return rules
