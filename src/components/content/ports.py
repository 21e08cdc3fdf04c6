"""
Content component port definitions.
"""

from src.ports.repo import ContentRepoPort
from src.ports.services import BlobStorePort, ClockPort

__all__ = ["BlobStorePort", "ClockPort", "ContentRepoPort"]
