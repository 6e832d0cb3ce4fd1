"""ProfileApplicationService — thin composition layer over the repository.

Store failures propagate unchanged (StoreUnavailableError); there is no
automatic retry, the caller decides whether to submit again.
"""

import logging

from src.tk_profile.domain.editing import ProfileEditSession
from src.tk_profile.domain.models import UserProfile
from src.tk_profile.domain.repository import ProfileRepositoryProtocol

logger = logging.getLogger(__name__)


class ProfileApplicationService:
    def __init__(self, repo: ProfileRepositoryProtocol) -> None:
        self._repo = repo

    async def load(self, user_id: str) -> UserProfile:
        return await self._repo.load(user_id)

    async def save(self, user_id: str, profile: UserProfile) -> UserProfile:
        await self._repo.save(user_id, profile)
        return profile

    async def commit_edit(self, user_id: str, editor: ProfileEditSession) -> UserProfile:
        """Write the form and leave edit mode. On failure the form stays open."""
        form = editor.form
        try:
            await self._repo.save(user_id, form)
        except Exception:
            logger.warning("profile save failed for user %s; form kept open", user_id)
            raise
        editor.close()
        return form
