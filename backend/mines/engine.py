# mines/engine.py
from __future__ import annotations

import secrets
from decimal import Decimal, ROUND_DOWN, localcontext
from typing import List

from django.conf import settings

from ledger.errors import InvalidConfiguration

D1 = Decimal("1")
MULTIPLIER_STEP = Decimal("0.0001")

_rng = secrets.SystemRandom()


def q4(x: Decimal) -> Decimal:
    return x.quantize(MULTIPLIER_STEP, rounding=ROUND_DOWN)


def clamp(x: Decimal, lo: Decimal, hi: Decimal) -> Decimal:
    return max(lo, min(hi, x))


def validate_board(board_size: int, hazard_count: int) -> None:
    if board_size < 2 or board_size > settings.MINES_MAX_BOARD_SIZE:
        raise InvalidConfiguration(f"Board size must be between 2 and {settings.MINES_MAX_BOARD_SIZE}")
    if hazard_count < 1 or hazard_count > board_size - 1:
        raise InvalidConfiguration(f"Hazard count must be between 1 and {board_size - 1}")


def place_hazards(board_size: int, hazard_count: int) -> List[int]:
    """Uniform draw without replacement."""
    validate_board(board_size, hazard_count)
    return sorted(_rng.sample(range(board_size), hazard_count))


def fair_multiplier(board_size: int, hazard_count: int, safe_reveals: int) -> Decimal:
    """
    Reciprocal of the probability of surviving ``safe_reveals`` picks in a row:

        prod_{i=1..k} (N - i + 1) / (S - i + 1),  S = N - H
    """
    safe_cells = board_size - hazard_count
    if safe_cells <= 0:
        raise InvalidConfiguration("Board has no safe cells")
    if safe_reveals < 0 or safe_reveals > safe_cells:
        raise InvalidConfiguration("More reveals than safe cells")

    numerator = 1
    denominator = 1
    for i in range(1, safe_reveals + 1):
        numerator *= board_size - i + 1
        denominator *= safe_cells - i + 1

    with localcontext() as ctx:
        ctx.prec = 50
        return Decimal(numerator) / Decimal(denominator)


def payout_multiplier(
    board_size: int,
    hazard_count: int,
    safe_reveals: int,
    house_edge: Decimal | None = None,
) -> Decimal:
    edge = settings.MINES_HOUSE_EDGE if house_edge is None else house_edge
    fair = fair_multiplier(board_size, hazard_count, safe_reveals)

    with localcontext() as ctx:
        ctx.prec = 50
        raw = fair * (D1 - edge)
        raw = clamp(raw, settings.MINES_MIN_MULTIPLIER, settings.MINES_MAX_MULTIPLIER)
        return q4(raw)


def payout_for(stake: int, multiplier: Decimal) -> int:
    """Whole currency units, rounded down."""
    return int((Decimal(stake) * multiplier).to_integral_value(rounding=ROUND_DOWN))
