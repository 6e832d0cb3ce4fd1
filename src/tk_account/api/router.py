"""tk_account REST endpoints (prefix /account).

POST   /account/sign-out   — tear down the live session (unsubscribe ledger)
DELETE /account/notice     — dismiss the last failure notice
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from src.tk_account.registry import get_registry
from src.tk_account.session import AccountSession, Identity
from src.tk_common.response import ApiResponse, success_response
from src.tk_gateway.auth.dependencies import get_account_session, get_current_identity

router = APIRouter(prefix="/account", tags=["account"])


@router.post("/sign-out")
async def sign_out(
    request: Request,
    identity: Annotated[Identity, Depends(get_current_identity)],
) -> ApiResponse:
    ended = await get_registry().end(identity.user_id)
    return success_response({"signed_out": ended}, request)


@router.delete("/notice")
async def dismiss_notice(
    request: Request,
    session: Annotated[AccountSession, Depends(get_account_session)],
) -> ApiResponse:
    session.dismiss_notice()
    return success_response(session.summary().model_dump(), request)
