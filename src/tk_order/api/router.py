"""tk_order REST endpoints (prefix /account/orders).

GET    /account/orders                              — ledger with totals
POST   /account/orders/{order_id}/edit              — start editing quantities
PUT    /account/orders/{order_id}/tickets/{tid}     — set a pending quantity
POST   /account/orders/{order_id}/commit            — write pending quantities
POST   /account/orders/{order_id}/discard           — drop pending quantities
DELETE /account/orders/{order_id}                   — delete the whole order

Mutating endpoints answer with the refreshed summary.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from src.tk_account.session import AccountSession
from src.tk_common.response import ApiResponse, success_response
from src.tk_gateway.auth.dependencies import get_account_session
from src.tk_order.application.schemas import SetQuantityRequest

router = APIRouter(prefix="/account/orders", tags=["orders"])

Session = Annotated[AccountSession, Depends(get_account_session)]


@router.get("")
async def get_orders(request: Request, session: Session) -> ApiResponse:
    return success_response(session.summary().model_dump(), request)


@router.post("/{order_id}/edit")
async def begin_edit(order_id: str, request: Request, session: Session) -> ApiResponse:
    session.begin_edit(order_id)
    return success_response(session.summary().model_dump(), request)


@router.put("/{order_id}/tickets/{ticket_id}")
async def set_quantity(
    order_id: str,
    ticket_id: str,
    body: SetQuantityRequest,
    request: Request,
    session: Session,
) -> ApiResponse:
    session.set_quantity(order_id, ticket_id, body.quantity)
    return success_response(session.summary().model_dump(), request)


@router.post("/{order_id}/commit")
async def commit_edit(order_id: str, request: Request, session: Session) -> ApiResponse:
    written = await session.commit_edit(order_id)
    data = session.summary().model_dump()
    data["written"] = written
    return success_response(data, request)


@router.post("/{order_id}/discard")
async def discard_edit(order_id: str, request: Request, session: Session) -> ApiResponse:
    session.discard_edit(order_id)
    return success_response(session.summary().model_dump(), request)


@router.delete("/{order_id}")
async def delete_order(order_id: str, request: Request, session: Session) -> ApiResponse:
    await session.delete_order(order_id)
    return success_response(session.summary().model_dump(), request)
