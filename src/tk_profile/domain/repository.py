"""Repository Protocol — dependency inversion for testability.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the store-backed implementation.
"""

from typing import Protocol

from src.tk_profile.domain.models import UserProfile


class ProfileRepositoryProtocol(Protocol):
    async def load(self, user_id: str) -> UserProfile:
        """Return the stored profile, or an empty one when none exists yet."""
        ...

    async def save(self, user_id: str, profile: UserProfile) -> None: ...
