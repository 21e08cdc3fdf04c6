"""
Routes shared by blogs, projects and events.

``build_content_router`` wires the same listing, detail, create, update,
delete and review endpoints for one content kind.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from src.adapters.clock import SystemClock
from src.adapters.fs.blobstore import LocalBlobStore
from src.adapters.sqlite.repos import (
    SQLiteCommentRepo,
    SQLiteContentRepo,
    SQLiteLikeRepo,
    SQLiteUserRepo,
)
from src.api.deps import (
    get_blob_store,
    get_clock,
    get_comment_repo,
    get_content_repo,
    get_current_user,
    get_like_repo,
    get_optional_user,
    get_policy,
    get_rules,
    get_user_repo,
)
from src.api.schemas import ApiResponse, ReviewRequest, ok
from src.components.content import (
    CreateContentInput,
    DeleteContentInput,
    UpdateContentInput,
    run_create,
    run_delete,
    run_update,
)
from src.components.moderation import ReviewContentInput, run_review_content
from src.components.views import (
    ItemViewInput,
    ListingInput,
    assemble_item,
    assemble_listing,
    assemble_projection,
)
from src.domain.entities import ContentKind, ContentRef, User
from src.domain.policy import PolicyEngine
from src.rules.models import Rules

LABELS: dict[ContentKind, str] = {"blog": "Blog", "project": "Project", "event": "Event"}


def build_content_router(
    kind: ContentKind,
    create_model: type[BaseModel],
    update_model: type[BaseModel],
) -> APIRouter:
    router = APIRouter()
    label = LABELS[kind]

    @router.get("/approved", response_model=ApiResponse)
    def list_approved(
        viewer: User | None = Depends(get_optional_user),
        repo: SQLiteContentRepo = Depends(get_content_repo),
        user_repo: SQLiteUserRepo = Depends(get_user_repo),
        policy: PolicyEngine = Depends(get_policy),
    ) -> ApiResponse:
        views = assemble_listing(
            ListingInput(viewer=viewer, kind=kind, approved_only=True),
            content_repo=repo,
            user_repo=user_repo,
            policy=policy,
        )
        return ok(views, f"Approved {label.lower()}s fetched successfully")

    @router.get("", response_model=ApiResponse)
    def list_all(
        current_user: User = Depends(get_current_user),
        repo: SQLiteContentRepo = Depends(get_content_repo),
        user_repo: SQLiteUserRepo = Depends(get_user_repo),
        policy: PolicyEngine = Depends(get_policy),
    ) -> ApiResponse:
        """Every status, admin only."""
        views = assemble_listing(
            ListingInput(viewer=current_user, kind=kind, approved_only=False),
            content_repo=repo,
            user_repo=user_repo,
            policy=policy,
        )
        return ok(views, f"All {label.lower()}s fetched successfully")

    @router.post("", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
    def create_item(
        req: create_model,  # type: ignore[valid-type]
        current_user: User = Depends(get_current_user),
        repo: SQLiteContentRepo = Depends(get_content_repo),
        user_repo: SQLiteUserRepo = Depends(get_user_repo),
        comment_repo: SQLiteCommentRepo = Depends(get_comment_repo),
        like_repo: SQLiteLikeRepo = Depends(get_like_repo),
        policy: PolicyEngine = Depends(get_policy),
        rules: Rules = Depends(get_rules),
        clock: SystemClock = Depends(get_clock),
    ) -> ApiResponse:
        item = run_create(
            CreateContentInput(actor=current_user, kind=kind, fields=req.model_dump()),
            repo=repo,
            policy=policy,
            rules=rules,
            clock=clock,
        )
        view = assemble_item(
            ItemViewInput(viewer=current_user, kind=kind, item_id=item.id),
            content_repo=repo,
            comment_repo=comment_repo,
            like_repo=like_repo,
            user_repo=user_repo,
            policy=policy,
        )
        return ok(view, f"{label} created successfully, pending review", status_code=201)

    @router.get("/{item_id}", response_model=ApiResponse)
    def get_item(
        item_id: UUID,
        viewer: User | None = Depends(get_optional_user),
        repo: SQLiteContentRepo = Depends(get_content_repo),
        user_repo: SQLiteUserRepo = Depends(get_user_repo),
        comment_repo: SQLiteCommentRepo = Depends(get_comment_repo),
        like_repo: SQLiteLikeRepo = Depends(get_like_repo),
        policy: PolicyEngine = Depends(get_policy),
    ) -> ApiResponse:
        view = assemble_item(
            ItemViewInput(viewer=viewer, kind=kind, item_id=item_id),
            content_repo=repo,
            comment_repo=comment_repo,
            like_repo=like_repo,
            user_repo=user_repo,
            policy=policy,
        )
        return ok(view, f"{label} fetched successfully")

    @router.patch("/{item_id}", response_model=ApiResponse)
    def update_item(
        item_id: UUID,
        req: update_model,  # type: ignore[valid-type]
        current_user: User = Depends(get_current_user),
        repo: SQLiteContentRepo = Depends(get_content_repo),
        user_repo: SQLiteUserRepo = Depends(get_user_repo),
        comment_repo: SQLiteCommentRepo = Depends(get_comment_repo),
        like_repo: SQLiteLikeRepo = Depends(get_like_repo),
        policy: PolicyEngine = Depends(get_policy),
        rules: Rules = Depends(get_rules),
        clock: SystemClock = Depends(get_clock),
    ) -> ApiResponse:
        run_update(
            UpdateContentInput(
                actor=current_user,
                ref=ContentRef(kind=kind, id=item_id),
                changes=req.model_dump(exclude_unset=True),
            ),
            repo=repo,
            policy=policy,
            rules=rules,
            clock=clock,
        )
        view = assemble_item(
            ItemViewInput(viewer=current_user, kind=kind, item_id=item_id),
            content_repo=repo,
            comment_repo=comment_repo,
            like_repo=like_repo,
            user_repo=user_repo,
            policy=policy,
        )
        return ok(view, f"{label} updated successfully")

    @router.delete("/{item_id}", response_model=ApiResponse)
    def delete_item(
        item_id: UUID,
        current_user: User = Depends(get_current_user),
        repo: SQLiteContentRepo = Depends(get_content_repo),
        policy: PolicyEngine = Depends(get_policy),
        blobs: LocalBlobStore = Depends(get_blob_store),
    ) -> ApiResponse:
        run_delete(
            DeleteContentInput(actor=current_user, ref=ContentRef(kind=kind, id=item_id)),
            repo=repo,
            policy=policy,
            blobs=blobs,
        )
        return ok({"id": str(item_id)}, f"{label} deleted successfully")

    @router.patch("/{item_id}/review", response_model=ApiResponse)
    def review_item(
        item_id: UUID,
        req: ReviewRequest,
        current_user: User = Depends(get_current_user),
        repo: SQLiteContentRepo = Depends(get_content_repo),
        user_repo: SQLiteUserRepo = Depends(get_user_repo),
        policy: PolicyEngine = Depends(get_policy),
        clock: SystemClock = Depends(get_clock),
    ) -> ApiResponse:
        item = run_review_content(
            ReviewContentInput(
                actor=current_user, ref=ContentRef(kind=kind, id=item_id), status=req.status
            ),
            repo=repo,
            policy=policy,
            clock=clock,
        )
        view = assemble_projection(item, user_repo=user_repo)
        return ok(view, f"{label} {item.status.lower()} successfully")

    return router
