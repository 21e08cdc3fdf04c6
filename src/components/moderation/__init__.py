"""
Moderation component - PENDING to APPROVED/REJECTED for content and comments.
"""

from .component import run_review_comment, run_review_content
from .models import ReviewCommentInput, ReviewContentInput
from .ports import ClockPort, CommentRepoPort, ContentRepoPort

__all__ = [
    "run_review_comment",
    "run_review_content",
    "ReviewCommentInput",
    "ReviewContentInput",
    "ClockPort",
    "CommentRepoPort",
    "ContentRepoPort",
]
