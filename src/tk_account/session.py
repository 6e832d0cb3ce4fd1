"""AccountSession — everything the account page needs for one signed-in user.

Driven by identity events: sign-in loads the profile and opens the order
ledger subscription; sign-out (or a switch to another user) tears the
subscription down before anything else happens.

Totals are never cached: summary() recomputes them from the ledger and
the edit overlay on every call.

A failed store write leaves orders, pending edits and the profile form
as they were and sets a dismissible notice.

If the live order stream is lost, the last orders stay visible, a notice
says so, and resync() re-opens the subscription.
"""

import logging
from dataclasses import dataclass
from typing import Any

from src.tk_common.errors import NotSignedInError, StoreUnavailableError, WriteRejectedError
from src.tk_order.application.schemas import LedgerSummaryResponse
from src.tk_order.application.service import OrderApplicationService
from src.tk_order.domain.models import Order
from src.tk_order.domain.repository import OrderLedgerProtocol
from src.tk_order.infrastructure.ledger import OrderLedger
from src.tk_profile.application.service import ProfileApplicationService
from src.tk_profile.domain.editing import ProfileEditSession
from src.tk_profile.domain.models import UserProfile
from src.tk_profile.domain.repository import ProfileRepositoryProtocol
from src.tk_profile.infrastructure.persistence import ProfileRepository
from src.tk_store.domain.store import LedgerStoreProtocol

logger = logging.getLogger(__name__)

DELETE_FAILED_NOTICE = "Could not delete the order. Please try again."
UPDATE_FAILED_NOTICE = "Could not save the new quantities. Please try again."
PROFILE_FAILED_NOTICE = "Could not save the profile. Please try again."
SYNC_LOST_NOTICE = "Live order updates were interrupted. Orders may be out of date."

_WRITE_ERRORS = (StoreUnavailableError, WriteRejectedError)


@dataclass(frozen=True)
class Identity:
    user_id: str
    email: str | None = None


class AccountSession:
    def __init__(
        self,
        store: LedgerStoreProtocol,
        profile_repo: ProfileRepositoryProtocol | None = None,
        ledger: OrderLedgerProtocol | None = None,
    ) -> None:
        self._profiles = ProfileApplicationService(profile_repo or ProfileRepository(store))
        self._ledger: OrderLedgerProtocol = ledger or OrderLedger(store)
        self._orders = OrderApplicationService(self._ledger)
        self._profile_editor = ProfileEditSession()
        self._identity: Identity | None = None
        self._profile = UserProfile()
        self._notice: str | None = None

    @property
    def identity(self) -> Identity | None:
        return self._identity

    @property
    def profile(self) -> UserProfile:
        return self._profile

    @property
    def orders(self) -> list[Order]:
        return self._ledger.orders

    @property
    def notice(self) -> str | None:
        return self._notice

    @property
    def sync_lost(self) -> bool:
        """Signed in, but the order stream is no longer live."""
        return self._identity is not None and not self._ledger.live

    @property
    def profile_editor(self) -> ProfileEditSession:
        return self._profile_editor

    def dismiss_notice(self) -> None:
        self._notice = None

    def _require_user(self) -> str:
        if self._identity is None:
            raise NotSignedInError()
        return self._identity.user_id

    # ------------------------------------------------------------------
    # Identity events
    # ------------------------------------------------------------------

    async def on_auth_state_changed(self, identity: Identity | None) -> None:
        if identity is None:
            await self.sign_out()
        else:
            await self.sign_in(identity)

    async def sign_in(self, identity: Identity) -> None:
        if self._identity is not None and self._identity.user_id == identity.user_id:
            return
        await self.sign_out()
        self._identity = identity
        try:
            profile = await self._profiles.load(identity.user_id)
            await self._subscribe(identity.user_id)
        except Exception:
            logger.warning("sign-in failed for user %s", identity.user_id)
            await self.sign_out()
            raise
        if not profile.email and identity.email:
            profile.email = identity.email
        self._profile = profile
        logger.info("user %s signed in", identity.user_id)

    async def _subscribe(self, user_id: str) -> None:
        await self._ledger.subscribe(user_id, self._orders.on_ledger_change, self._on_ledger_lost)

    def _on_ledger_lost(self, exc: Exception) -> None:
        logger.warning("order stream lost for user %s: %s", self._ledger.user_id, exc)
        self._notice = SYNC_LOST_NOTICE

    async def resync(self) -> None:
        """Re-open a lost order stream. Pending edits of surviving orders are kept."""
        if not self.sync_lost:
            return
        user_id = self._require_user()
        await self._subscribe(user_id)
        logger.info("order stream resumed for user %s", user_id)

    async def sign_out(self) -> None:
        previous = self._identity
        await self._ledger.unsubscribe()
        self._orders.edits.discard_all()
        self._profile_editor.close()
        self._identity = None
        self._profile = UserProfile()
        self._notice = None
        if previous is not None:
            logger.info("user %s signed out", previous.user_id)

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def summary(self) -> LedgerSummaryResponse:
        self._require_user()
        return self._orders.summary(self._notice)

    def begin_edit(self, order_id: str) -> None:
        self._require_user()
        self._orders.begin_edit(order_id)

    def set_quantity(self, order_id: str, ticket_id: str, quantity: int) -> int:
        self._require_user()
        return self._orders.set_quantity(order_id, ticket_id, quantity)

    def discard_edit(self, order_id: str) -> None:
        self._require_user()
        self._orders.discard(order_id)

    async def commit_edit(self, order_id: str) -> dict[str, int]:
        self._require_user()
        try:
            return await self._orders.commit(order_id)
        except _WRITE_ERRORS:
            self._notice = UPDATE_FAILED_NOTICE
            raise

    async def delete_order(self, order_id: str) -> None:
        self._require_user()
        try:
            await self._orders.delete(order_id)
        except _WRITE_ERRORS:
            self._notice = DELETE_FAILED_NOTICE
            raise

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    def begin_profile_edit(self) -> UserProfile:
        self._require_user()
        return self._profile_editor.begin(self._profile)

    def update_profile_form(self, values: dict[str, Any]) -> UserProfile:
        self._require_user()
        for name, value in values.items():
            self._profile_editor.update_field(name, value)
        return self._profile_editor.form

    def discard_profile_edit(self) -> None:
        self._require_user()
        self._profile_editor.close()

    async def commit_profile_edit(self) -> UserProfile:
        user_id = self._require_user()
        try:
            self._profile = await self._profiles.commit_edit(user_id, self._profile_editor)
        except _WRITE_ERRORS:
            self._notice = PROFILE_FAILED_NOTICE
            raise
        return self._profile

    async def save_profile(self, profile: UserProfile) -> UserProfile:
        user_id = self._require_user()
        try:
            self._profile = await self._profiles.save(user_id, profile)
        except _WRITE_ERRORS:
            self._notice = PROFILE_FAILED_NOTICE
            raise
        self._profile_editor.close()
        return self._profile
