# mines/services.py
import logging

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from ledger import store
from ledger.errors import InvalidInput, InvalidTransition, AlreadyRevealed, NotFound
from pool.services import append_contribution
from pool.models import Contribution
from .engine import validate_board, place_hazards, payout_multiplier, payout_for
from .models import WagerSession

logger = logging.getLogger(__name__)


def _get_session(session_id, account_key, for_update=False):
    qs = WagerSession.objects.select_related("account")
    if for_update:
        qs = qs.select_for_update()
    try:
        return qs.get(id=session_id, account__key=account_key)
    except (WagerSession.DoesNotExist, ValidationError):
        raise NotFound("Session not found")


def session_view(session: WagerSession) -> dict:
    data = {
        "session_id": session.id,
        "account": session.account.key,
        "status": session.status,
        "stake": session.stake,
        "board_size": session.board_size,
        "hazard_count": session.hazard_count,
        "revealed_cells": list(session.revealed_cells),
        "multiplier": session.multiplier,
        "payout": session.payout,
    }
    # layout stays hidden while the round can still be played
    if session.is_terminal:
        data["hazard_cells"] = list(session.hazard_cells)
    return data


# ======================================================
# START
# ======================================================
def start(account_key, stake, hazard_count, board_size=None) -> WagerSession:
    board_size = settings.MINES_BOARD_SIZE if board_size is None else board_size

    if not isinstance(stake, int) or stake < 1:
        raise InvalidInput("Invalid stake")
    validate_board(board_size, hazard_count)

    with transaction.atomic():
        account = store.apply(account_key, store.debit("spendable_balance", stake))

        session = WagerSession.objects.create(
            account=account,
            stake=stake,
            board_size=board_size,
            hazard_count=hazard_count,
            hazard_cells=place_hazards(board_size, hazard_count),
            revealed_cells=[],
            status=WagerSession.STATUS_ACTIVE,
        )

    logger.info(
        "Mines session %s started by %s (stake=%s, board=%s, hazards=%s)",
        session.id, account_key, stake, board_size, hazard_count,
    )
    return session


# ======================================================
# REVEAL
# ======================================================
def reveal(session_id, cell_index, account_key) -> dict:
    with transaction.atomic():
        session = _get_session(session_id, account_key, for_update=True)

        if session.status != WagerSession.STATUS_ACTIVE:
            raise InvalidTransition()

        if not isinstance(cell_index, int) or not 0 <= cell_index < session.board_size:
            raise InvalidInput("Cell outside the board")

        if cell_index in session.revealed_cells:
            raise AlreadyRevealed()

        if cell_index in session.hazard_cells:
            session.status = WagerSession.STATUS_LOST
            session.payout = 0
            session.finished_at = timezone.now()
            session.save(update_fields=["status", "payout", "finished_at"])

            # the burned stake feeds today's pool
            append_contribution(session.account, session.stake, Contribution.KIND_BURN)

            logger.info("Mines session %s lost on cell %s", session.id, cell_index)
            return {**session_view(session), "hit_hazard": True}

        session.revealed_cells = [*session.revealed_cells, cell_index]
        session.multiplier = payout_multiplier(
            session.board_size,
            session.hazard_count,
            len(session.revealed_cells),
        )
        session.save(update_fields=["revealed_cells", "multiplier"])

    return {**session_view(session), "hit_hazard": False}


# ======================================================
# CASH OUT
# ======================================================
def cash_out(session_id, account_key) -> WagerSession:
    with transaction.atomic():
        session = _get_session(session_id, account_key)

        # the conditional transition is the double-pay guard
        transitioned = WagerSession.objects.filter(
            id=session.id,
            status=WagerSession.STATUS_ACTIVE,
        ).update(
            status=WagerSession.STATUS_CASHED,
            finished_at=timezone.now(),
        )
        if not transitioned:
            raise InvalidTransition()

        session.refresh_from_db()
        payout = payout_for(session.stake, session.multiplier)

        WagerSession.objects.filter(id=session.id).update(payout=payout)
        session.payout = payout

        store.apply(account_key, store.credit("spendable_balance", payout))

    logger.info(
        "Mines session %s cashed out by %s at %sx (payout=%s)",
        session.id, account_key, session.multiplier, payout,
    )
    return session


def session_state(session_id, account_key) -> dict:
    return session_view(_get_session(session_id, account_key))
