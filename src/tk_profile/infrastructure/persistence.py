"""ProfileRepository — store-backed implementation of ProfileRepositoryProtocol.

Record shape at users/{userId} (camelCase, as written by the web client):
  {firstName, lastName, email,
   paymentInfo: {cardName, cardNumber, expiryDate, paymentMethod, selectedCard}}
"""

import logging
from typing import Any

from src.tk_profile.domain.models import PaymentInfo, UserProfile
from src.tk_store.domain.store import LedgerStoreProtocol, user_path

logger = logging.getLogger(__name__)

_PAYMENT_KEYS = {
    "card_name": "cardName",
    "card_number": "cardNumber",
    "expiry_date": "expiryDate",
    "payment_method": "paymentMethod",
    "selected_card": "selectedCard",
}

# ---------------------------------------------------------------------------
# Record mappers
# ---------------------------------------------------------------------------


def _text(record: dict[str, Any], key: str) -> str:
    value = record.get(key)
    return value if isinstance(value, str) else ""


def record_to_profile(record: Any) -> UserProfile:
    if not isinstance(record, dict):
        return UserProfile()
    payment = record.get("paymentInfo")
    if not isinstance(payment, dict):
        payment = {}
    return UserProfile(
        first_name=_text(record, "firstName"),
        last_name=_text(record, "lastName"),
        email=_text(record, "email"),
        payment_info=PaymentInfo(
            **{attr: _text(payment, key) for attr, key in _PAYMENT_KEYS.items()}
        ),
    )


def profile_to_record(profile: UserProfile) -> dict[str, Any]:
    return {
        "firstName": profile.first_name,
        "lastName": profile.last_name,
        "email": profile.email,
        "paymentInfo": {
            key: getattr(profile.payment_info, attr) for attr, key in _PAYMENT_KEYS.items()
        },
    }


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------

class ProfileRepository:
    def __init__(self, store: LedgerStoreProtocol) -> None:
        self._store = store

    async def load(self, user_id: str) -> UserProfile:
        record = await self._store.get(user_path(user_id))
        if record is None:
            logger.debug("no profile stored for user %s", user_id)
        return record_to_profile(record)

    async def save(self, user_id: str, profile: UserProfile) -> None:
        # Merge: keys written elsewhere on the user node survive.
        await self._store.update(user_path(user_id), profile_to_record(profile))
        logger.info("profile saved for user %s", user_id)
