from typing import Protocol
from uuid import UUID

from src.ports.repo import ContentRepoPort, UserRepoPort
from src.ports.services import BlobStorePort, ClockPort


class AuthAdapterPort(Protocol):
    def hash_password(self, plain: str) -> str: ...
    def verify_password(self, plain: str, hashed: str) -> bool: ...
    def create_token(self, user_id: UUID, ttl_minutes: int) -> str: ...


__all__ = [
    "AuthAdapterPort",
    "BlobStorePort",
    "ClockPort",
    "ContentRepoPort",
    "UserRepoPort",
]
