from src.ports.repo import CommentRepoPort, ContentRepoPort, LikeRepoPort
from src.ports.services import ClockPort

__all__ = ["ClockPort", "CommentRepoPort", "ContentRepoPort", "LikeRepoPort"]
