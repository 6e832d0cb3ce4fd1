"""Pydantic schemas for the profile endpoints."""

from pydantic import BaseModel, ConfigDict

from src.tk_profile.domain.models import PaymentInfo, UserProfile


class PaymentInfoSchema(BaseModel):
    card_name: str = ""
    card_number: str = ""
    expiry_date: str = ""
    payment_method: str = ""
    selected_card: str = ""


class ProfileSchema(BaseModel):
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    payment_info: PaymentInfoSchema = PaymentInfoSchema()

    def to_domain(self) -> UserProfile:
        return UserProfile(
            first_name=self.first_name,
            last_name=self.last_name,
            email=self.email,
            payment_info=PaymentInfo(**self.payment_info.model_dump()),
        )


class ProfileResponse(ProfileSchema):
    display_name: str
    editing: bool = False

    @classmethod
    def from_domain(cls, profile: UserProfile, editing: bool = False) -> "ProfileResponse":
        return cls(
            first_name=profile.first_name,
            last_name=profile.last_name,
            email=profile.email,
            payment_info=PaymentInfoSchema(
                card_name=profile.payment_info.card_name,
                card_number=profile.payment_info.card_number,
                expiry_date=profile.payment_info.expiry_date,
                payment_method=profile.payment_info.payment_method,
                selected_card=profile.payment_info.selected_card,
            ),
            display_name=profile.display_name,
            editing=editing,
        )


class ProfileFormPatch(BaseModel):
    """Fields typed into the edit form; only the ones sent are applied."""

    model_config = ConfigDict(extra="forbid")

    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    card_name: str | None = None
    card_number: str | None = None
    expiry_date: str | None = None
    payment_method: str | None = None
    selected_card: str | None = None
