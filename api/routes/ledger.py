"""Debt ledger endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from api.dependencies import optional_session
from api.schemas import DebtResponse, LedgerResponse
from api.session import TableSession, get_ledger

router = APIRouter()


@router.get("")
async def get_ledger_state(
    session: Annotated[TableSession | None, Depends(optional_session)],
) -> LedgerResponse:
    """
    List outstanding debts.

    With a session header, also report the net position of each seated player.
    """
    ledger = get_ledger()
    balances: dict[str, float] = {}
    if session is not None:
        balances = {
            player.id: float(ledger.get_net_balance(player.id))
            for player in session.table.roster
        }
    return LedgerResponse(
        debts=[
            DebtResponse(debtor=d.debtor, creditor=d.creditor, amount=float(d.amount))
            for d in ledger.get_debts()
        ],
        balances=balances,
    )


@router.delete("")
async def reset_ledger() -> LedgerResponse:
    """Forget every debt."""
    get_ledger().reset()
    return LedgerResponse(debts=[], balances={})
