"""
Reactions component - likes and comments.
"""

from .component import (
    ensure_target_visible,
    run_create_comment,
    run_delete_comment,
    run_like,
    run_list_comments,
    run_unlike,
)
from .models import CreateCommentInput, DeleteCommentInput, LikeInput, ListCommentsInput
from .ports import ClockPort, CommentRepoPort, ContentRepoPort, LikeRepoPort

__all__ = [
    # Entry points
    "run_create_comment",
    "run_delete_comment",
    "run_like",
    "run_list_comments",
    "run_unlike",
    "ensure_target_visible",
    # Input models
    "CreateCommentInput",
    "DeleteCommentInput",
    "LikeInput",
    "ListCommentsInput",
    # Ports
    "ClockPort",
    "CommentRepoPort",
    "ContentRepoPort",
    "LikeRepoPort",
]
