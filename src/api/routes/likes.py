from uuid import UUID

from fastapi import APIRouter, Depends, status

from src.adapters.clock import SystemClock
from src.adapters.sqlite.repos import SQLiteCommentRepo, SQLiteContentRepo, SQLiteLikeRepo
from src.api.deps import (
    get_clock,
    get_comment_repo,
    get_content_repo,
    get_current_user,
    get_like_repo,
    get_policy,
)
from src.api.schemas import ApiResponse, ok
from src.components.reactions import LikeInput, run_like, run_unlike
from src.domain.entities import Like, TargetKind, TargetRef, User
from src.domain.policy import PolicyEngine

router = APIRouter()


def _like_data(like: Like) -> dict[str, str]:
    return {
        "id": str(like.id),
        "targetKind": like.target.kind,
        "targetId": str(like.target.id),
        "authorId": str(like.author_id),
    }


@router.post(
    "/{kind}/{target_id}", response_model=ApiResponse, status_code=status.HTTP_201_CREATED
)
def like(
    kind: TargetKind,
    target_id: UUID,
    current_user: User = Depends(get_current_user),
    likes: SQLiteLikeRepo = Depends(get_like_repo),
    content_repo: SQLiteContentRepo = Depends(get_content_repo),
    comment_repo: SQLiteCommentRepo = Depends(get_comment_repo),
    policy: PolicyEngine = Depends(get_policy),
    clock: SystemClock = Depends(get_clock),
) -> ApiResponse:
    created = run_like(
        LikeInput(actor=current_user, target=TargetRef(kind=kind, id=target_id)),
        likes=likes,
        content_repo=content_repo,
        comment_repo=comment_repo,
        policy=policy,
        clock=clock,
    )
    return ok(_like_data(created), f"{kind.capitalize()} liked successfully", status_code=201)


@router.delete("/{kind}/{target_id}", response_model=ApiResponse)
def unlike(
    kind: TargetKind,
    target_id: UUID,
    current_user: User = Depends(get_current_user),
    likes: SQLiteLikeRepo = Depends(get_like_repo),
) -> ApiResponse:
    removed = run_unlike(
        LikeInput(actor=current_user, target=TargetRef(kind=kind, id=target_id)), likes=likes
    )
    return ok(_like_data(removed), f"{kind.capitalize()} unliked successfully")
