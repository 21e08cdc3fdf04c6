from uuid import UUID

from fastapi import APIRouter, Depends, status

from src.adapters.clock import SystemClock
from src.adapters.sqlite.repos import SQLiteCommentRepo, SQLiteContentRepo, SQLiteUserRepo
from src.api.deps import (
    get_clock,
    get_comment_repo,
    get_content_repo,
    get_current_user,
    get_policy,
    get_rules,
    get_user_repo,
)
from src.api.schemas import ApiResponse, CommentCreateRequest, ReviewRequest, ok
from src.components.moderation import ReviewCommentInput, run_review_comment
from src.components.reactions import (
    CreateCommentInput,
    DeleteCommentInput,
    ListCommentsInput,
    run_create_comment,
    run_delete_comment,
)
from src.components.views import CommentView, assemble_comments
from src.domain.entities import ContentKind, ContentRef, User, UserProjection
from src.domain.policy import PolicyEngine
from src.rules.models import Rules

router = APIRouter()


@router.get("", response_model=ApiResponse)
def list_comments(
    current_user: User = Depends(get_current_user),
    content_repo: SQLiteContentRepo = Depends(get_content_repo),
    comment_repo: SQLiteCommentRepo = Depends(get_comment_repo),
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
    policy: PolicyEngine = Depends(get_policy),
) -> ApiResponse:
    """Every comment in every status (admin)."""
    views = assemble_comments(
        ListCommentsInput(actor=current_user),
        content_repo=content_repo,
        comment_repo=comment_repo,
        user_repo=user_repo,
        policy=policy,
    )
    return ok(views, "Comments fetched successfully")


@router.post(
    "/{kind}/{target_id}", response_model=ApiResponse, status_code=status.HTTP_201_CREATED
)
def create_comment(
    kind: ContentKind,
    target_id: UUID,
    req: CommentCreateRequest,
    current_user: User = Depends(get_current_user),
    content_repo: SQLiteContentRepo = Depends(get_content_repo),
    comment_repo: SQLiteCommentRepo = Depends(get_comment_repo),
    policy: PolicyEngine = Depends(get_policy),
    rules: Rules = Depends(get_rules),
    clock: SystemClock = Depends(get_clock),
) -> ApiResponse:
    comment = run_create_comment(
        CreateCommentInput(
            actor=current_user, target=ContentRef(kind=kind, id=target_id), content=req.content
        ),
        comment_repo=comment_repo,
        content_repo=content_repo,
        policy=policy,
        rules=rules,
        clock=clock,
    )
    view = CommentView(
        id=comment.id,
        content=comment.content,
        status=comment.status,
        author=UserProjection.of(current_user),
        created_at=comment.created_at,
    )
    return ok(view, "Comment added successfully, pending review", status_code=201)


@router.delete("/{comment_id}", response_model=ApiResponse)
def delete_comment(
    comment_id: UUID,
    current_user: User = Depends(get_current_user),
    comment_repo: SQLiteCommentRepo = Depends(get_comment_repo),
    policy: PolicyEngine = Depends(get_policy),
) -> ApiResponse:
    run_delete_comment(
        DeleteCommentInput(actor=current_user, comment_id=comment_id),
        comment_repo=comment_repo,
        policy=policy,
    )
    return ok({"id": str(comment_id)}, "Comment deleted successfully")


@router.patch("/{comment_id}/review", response_model=ApiResponse)
def review_comment(
    comment_id: UUID,
    req: ReviewRequest,
    current_user: User = Depends(get_current_user),
    comment_repo: SQLiteCommentRepo = Depends(get_comment_repo),
    policy: PolicyEngine = Depends(get_policy),
) -> ApiResponse:
    comment = run_review_comment(
        ReviewCommentInput(actor=current_user, comment_id=comment_id, status=req.status),
        repo=comment_repo,
        policy=policy,
    )
    data = {
        "id": str(comment.id),
        "status": comment.status,
        "reviewedBy": UserProjection.of(current_user),
    }
    return ok(data, f"Comment {comment.status.lower()} successfully")
