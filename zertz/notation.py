"""
Move notation for Zertz.

Placement: ``Wd4`` or ``Wd4 -a7`` (colour initial, target ring, and the
ring removed in the same turn). Capture: ``Bd4-f4-f6`` (capturing marble
initial, start ring, then every landing ring of the chain).

Coordinates are algebraic labels relative to the board's bounding box,
see :meth:`BoardManager.id_to_algebraic`.
"""

from __future__ import annotations

import re
from typing import Optional

from .board_manager import HEX_DIRECTIONS, BoardManager
from .errors import InvalidMoveError
from .models import CaptureMove, MarbleColor, Move, MoveType, PlacementMove

# Captures recorded without knowing the capturing marble use this letter.
DEFAULT_CAPTURE_LETTER = "B"

_COLOR_BY_INITIAL = {color.initial: color for color in MarbleColor}

_PLACEMENT_RE = re.compile(r"^([WGB])([a-z]\d+)(?:\s+-([a-z]\d+))?$")
_CAPTURE_RE = re.compile(r"^([WGB])([a-z]\d+)((?:-[a-z]\d+)+)$")


def move_to_notation(
    move: Move,
    board_size: int = 37,
    capturing_color: Optional[MarbleColor] = None,
) -> str:
    """Render ``move`` in display notation."""
    def alg(ring_id: str) -> str:
        return BoardManager.id_to_algebraic(ring_id, board_size)

    if move.type == MoveType.CAPTURE:
        steps = move.capture_steps()
        letter = (
            MarbleColor(capturing_color).initial
            if capturing_color is not None
            else DEFAULT_CAPTURE_LETTER
        )
        landings = "-".join(alg(step.to) for step in steps)
        return f"{letter}{alg(steps[0].from_ring)}-{landings}"

    data: PlacementMove = move.data  # type: ignore[assignment]
    text = f"{MarbleColor(data.marble_color).initial}{alg(data.ring_id)}"
    if data.removed_ring_id:
        text += f" -{alg(data.removed_ring_id)}"
    return text


def parse_notation(text: str, board_size: int = 37) -> Move:
    """Parse display notation back into a ``Move``.

    Capture notation does not name the jumped rings; each one is the
    midpoint of a jump. The capture letter is informational and ignored.
    """
    on_board = BoardManager.create_board(board_size)

    def ring(label: str) -> str:
        try:
            ring_id = BoardManager.algebraic_to_id(label, board_size)
        except ValueError as e:
            raise InvalidMoveError(str(e), context={"notation": text}) from e
        if ring_id not in on_board:
            raise InvalidMoveError(
                "Coordinate is not on the board",
                context={"notation": text, "label": label},
            )
        return ring_id

    cleaned = text.strip()

    placement = _PLACEMENT_RE.match(cleaned)
    if placement:
        initial, target, removed = placement.groups()
        return Move.for_placement(
            _COLOR_BY_INITIAL[initial],
            ring(target),
            ring(removed) if removed else None,
        )

    capture = _CAPTURE_RE.match(cleaned)
    if capture:
        _, start, rest = capture.groups()
        path = [ring(start)] + [ring(label) for label in rest.strip("-").split("-")]
        steps = []
        for origin, landing in zip(path, path[1:]):
            steps.append(
                CaptureMove(
                    from_ring=origin,
                    to=landing,
                    captured=_midpoint(origin, landing, cleaned),
                )
            )
        return Move.for_capture(steps)

    raise InvalidMoveError(
        "Unrecognised move notation", context={"notation": text}
    )


def _midpoint(origin: str, landing: str, text: str) -> str:
    oq, o_r = BoardManager.id_to_coord(origin)
    lq, l_r = BoardManager.id_to_coord(landing)
    dq, dr = lq - oq, l_r - o_r
    if (dq, dr) not in {(2 * q, 2 * r) for q, r in HEX_DIRECTIONS}:
        raise InvalidMoveError(
            "Capture step is not a jump over an adjacent ring",
            context={"notation": text, "from": origin, "to": landing},
        )
    return BoardManager.coord_to_id(oq + dq // 2, o_r + dr // 2)
