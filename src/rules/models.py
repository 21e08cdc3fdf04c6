"""Schema for rules.yaml. Cross-reference checks live in the loader."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, model_validator


class ProjectRules(BaseModel):
    slug: str
    rules_version: str


class RbacRules(BaseModel):
    # role -> permissions; "*" and "scope:*" are wildcards
    roles: dict[str, list[str]]
    public_permissions: list[str] = Field(default_factory=list)


class AbacRule(BaseModel):
    if_condition: dict[str, Any] = Field(alias="if")
    allow: list[str]

    model_config = ConfigDict(populate_by_name=True)


class AbacRules(BaseModel):
    ownership_rules: list[AbacRule] = Field(default_factory=list)


class RangeRule(BaseModel):
    """Inclusive length bounds for a text field."""

    min: int = Field(ge=0)
    max: PositiveInt

    @model_validator(mode="after")
    def _ordered(self) -> "RangeRule":
        if self.min > self.max:
            raise ValueError(f"min {self.min} exceeds max {self.max}")
        return self


class ContentRules(BaseModel):
    title: RangeRule
    body: RangeRule
    max_tags: int = Field(ge=0)


class CommentRules(BaseModel):
    content: RangeRule


class UploadsRules(BaseModel):
    max_upload_bytes: PositiveInt
    allowlist_extensions: list[str]

    @property
    def allowed(self) -> frozenset[str]:
        return frozenset(e.lower() for e in self.allowlist_extensions)


class IdentityRules(BaseModel):
    password_min_length: PositiveInt
    token_ttl_minutes: PositiveInt


class Rules(BaseModel):
    project: ProjectRules
    rbac: RbacRules
    abac: AbacRules
    content: ContentRules
    comments: CommentRules
    uploads: UploadsRules
    identity: IdentityRules
