"""Profile edit form: VIEWING -> EDITING -> (commit | discard) -> VIEWING.

The form is a private copy of the last loaded profile; nothing is written
until the application service commits it.
"""

import copy

from src.tk_common.errors import ProfileNotEditingError, UnknownProfileFieldError
from src.tk_profile.domain.models import PAYMENT_FIELDS, PROFILE_FIELDS, UserProfile


class ProfileEditSession:
    def __init__(self) -> None:
        self._form: UserProfile | None = None

    @property
    def editing(self) -> bool:
        return self._form is not None

    @property
    def form(self) -> UserProfile:
        if self._form is None:
            raise ProfileNotEditingError()
        return self._form

    def begin(self, profile: UserProfile) -> UserProfile:
        """Populate the form from ``profile``. A form already open is kept."""
        if self._form is None:
            self._form = copy.deepcopy(profile)
        return self._form

    def update_field(self, name: str, value: str) -> None:
        form = self.form
        if name in PROFILE_FIELDS:
            setattr(form, name, value)
        elif name in PAYMENT_FIELDS:
            setattr(form.payment_info, name, value)
        else:
            raise UnknownProfileFieldError(name)

    def close(self) -> None:
        """Back to VIEWING; used after a successful commit and on discard."""
        self._form = None
