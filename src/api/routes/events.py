from uuid import UUID

from fastapi import Depends, File, UploadFile

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
    get_policy,
    get_rules,
    get_user_repo,
)
from src.api.routes.content import build_content_router
from src.api.schemas import ApiResponse, EventCreateRequest, EventUpdateRequest, WinnerRequest, ok
from src.components.content import (
    DeclareWinnerInput,
    EventMembershipInput,
    SetEventImageInput,
    run_declare_winner,
    run_join_event,
    run_leave_event,
    run_set_event_image,
)
from src.components.views import ItemViewInput, assemble_item
from src.domain.entities import User
from src.domain.policy import PolicyEngine
from src.rules.models import Rules

router = build_content_router("event", EventCreateRequest, EventUpdateRequest)


def _detail(
    event_id: UUID,
    viewer: User,
    repo: SQLiteContentRepo,
    comment_repo: SQLiteCommentRepo,
    like_repo: SQLiteLikeRepo,
    user_repo: SQLiteUserRepo,
    policy: PolicyEngine,
) -> object:
    return assemble_item(
        ItemViewInput(viewer=viewer, kind="event", item_id=event_id),
        content_repo=repo,
        comment_repo=comment_repo,
        like_repo=like_repo,
        user_repo=user_repo,
        policy=policy,
    )


@router.patch("/{event_id}/join", response_model=ApiResponse)
def join_event(
    event_id: UUID,
    current_user: User = Depends(get_current_user),
    repo: SQLiteContentRepo = Depends(get_content_repo),
    comment_repo: SQLiteCommentRepo = Depends(get_comment_repo),
    like_repo: SQLiteLikeRepo = Depends(get_like_repo),
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
    policy: PolicyEngine = Depends(get_policy),
    clock: SystemClock = Depends(get_clock),
) -> ApiResponse:
    run_join_event(
        EventMembershipInput(actor=current_user, event_id=event_id),
        repo=repo,
        policy=policy,
        clock=clock,
    )
    view = _detail(event_id, current_user, repo, comment_repo, like_repo, user_repo, policy)
    return ok(view, "Joined event successfully")


@router.patch("/{event_id}/leave", response_model=ApiResponse)
def leave_event(
    event_id: UUID,
    current_user: User = Depends(get_current_user),
    repo: SQLiteContentRepo = Depends(get_content_repo),
    comment_repo: SQLiteCommentRepo = Depends(get_comment_repo),
    like_repo: SQLiteLikeRepo = Depends(get_like_repo),
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
    policy: PolicyEngine = Depends(get_policy),
    clock: SystemClock = Depends(get_clock),
) -> ApiResponse:
    run_leave_event(
        EventMembershipInput(actor=current_user, event_id=event_id), repo=repo, clock=clock
    )
    view = _detail(event_id, current_user, repo, comment_repo, like_repo, user_repo, policy)
    return ok(view, "Left event successfully")


@router.patch("/{event_id}/winner", response_model=ApiResponse)
def declare_winner(
    event_id: UUID,
    req: WinnerRequest,
    current_user: User = Depends(get_current_user),
    repo: SQLiteContentRepo = Depends(get_content_repo),
    comment_repo: SQLiteCommentRepo = Depends(get_comment_repo),
    like_repo: SQLiteLikeRepo = Depends(get_like_repo),
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
    policy: PolicyEngine = Depends(get_policy),
    clock: SystemClock = Depends(get_clock),
) -> ApiResponse:
    run_declare_winner(
        DeclareWinnerInput(actor=current_user, event_id=event_id, winner_id=req.winner_id),
        repo=repo,
        policy=policy,
        clock=clock,
    )
    view = _detail(event_id, current_user, repo, comment_repo, like_repo, user_repo, policy)
    return ok(view, "Winner declared successfully")


@router.put("/{event_id}/image", response_model=ApiResponse)
async def upload_event_image(
    event_id: UUID,
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    repo: SQLiteContentRepo = Depends(get_content_repo),
    comment_repo: SQLiteCommentRepo = Depends(get_comment_repo),
    like_repo: SQLiteLikeRepo = Depends(get_like_repo),
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
    policy: PolicyEngine = Depends(get_policy),
    rules: Rules = Depends(get_rules),
    blobs: LocalBlobStore = Depends(get_blob_store),
    clock: SystemClock = Depends(get_clock),
) -> ApiResponse:
    data = await file.read()
    run_set_event_image(
        SetEventImageInput(
            actor=current_user,
            event_id=event_id,
            filename=file.filename or "",
            data=data,
        ),
        repo=repo,
        policy=policy,
        rules=rules,
        blobs=blobs,
        clock=clock,
    )
    view = _detail(event_id, current_user, repo, comment_repo, like_repo, user_repo, policy)
    return ok(view, "Event image updated successfully")
