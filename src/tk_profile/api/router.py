"""tk_profile REST endpoints (prefix /account/profile).

GET   /account/profile                — last loaded profile
PUT   /account/profile                — save a full profile
POST  /account/profile/edit           — open the edit form
PATCH /account/profile/edit           — change form fields
POST  /account/profile/edit/commit    — save the form
POST  /account/profile/edit/discard   — close the form without saving
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from src.tk_account.session import AccountSession
from src.tk_common.response import ApiResponse, success_response
from src.tk_gateway.auth.dependencies import get_account_session
from src.tk_profile.application.schemas import ProfileFormPatch, ProfileResponse, ProfileSchema

router = APIRouter(prefix="/account/profile", tags=["profile"])

Session = Annotated[AccountSession, Depends(get_account_session)]


def _profile_data(session: AccountSession) -> dict:
    editor = session.profile_editor
    profile = editor.form if editor.editing else session.profile
    return ProfileResponse.from_domain(profile, editing=editor.editing).model_dump()


@router.get("")
async def get_profile(request: Request, session: Session) -> ApiResponse:
    return success_response(_profile_data(session), request)


@router.put("")
async def save_profile(body: ProfileSchema, request: Request, session: Session) -> ApiResponse:
    await session.save_profile(body.to_domain())
    return success_response(_profile_data(session), request)


@router.post("/edit")
async def begin_edit(request: Request, session: Session) -> ApiResponse:
    session.begin_profile_edit()
    return success_response(_profile_data(session), request)


@router.patch("/edit")
async def update_form(body: ProfileFormPatch, request: Request, session: Session) -> ApiResponse:
    session.update_profile_form(body.model_dump(exclude_none=True))
    return success_response(_profile_data(session), request)


@router.post("/edit/commit")
async def commit_edit(request: Request, session: Session) -> ApiResponse:
    await session.commit_profile_edit()
    return success_response(_profile_data(session), request)


@router.post("/edit/discard")
async def discard_edit(request: Request, session: Session) -> ApiResponse:
    session.discard_profile_edit()
    return success_response(_profile_data(session), request)
