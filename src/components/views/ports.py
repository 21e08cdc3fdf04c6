from src.ports.repo import CommentRepoPort, ContentRepoPort, LikeRepoPort, UserRepoPort

__all__ = ["CommentRepoPort", "ContentRepoPort", "LikeRepoPort", "UserRepoPort"]
