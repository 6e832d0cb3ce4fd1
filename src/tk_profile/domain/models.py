"""Domain models for tk_profile — pure dataclasses, no store dependency.

Payment metadata is opaque: nothing here validates card numbers or dates.
"""

from dataclasses import dataclass, field, fields

DEFAULT_DISPLAY_NAME = "Utente"


@dataclass
class PaymentInfo:
    card_name: str = ""
    card_number: str = ""
    expiry_date: str = ""
    payment_method: str = ""
    selected_card: str = ""


@dataclass
class UserProfile:
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    payment_info: PaymentInfo = field(default_factory=PaymentInfo)

    @property
    def display_name(self) -> str:
        return self.first_name or DEFAULT_DISPLAY_NAME


PROFILE_FIELDS = frozenset(f.name for f in fields(UserProfile) if f.name != "payment_info")
PAYMENT_FIELDS = frozenset(f.name for f in fields(PaymentInfo))
