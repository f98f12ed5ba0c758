"""Board-level helpers for the Zertz engine.

The board is a plain ``dict`` of ring id -> ``Ring``. Adjacency is never
stored: neighbours are computed on demand from the axial coordinates, so
a board snapshot can be copied, serialised or inspected without any
graph bookkeeping.

Ring ids are ``"q,r"`` strings. The six axial directions are listed in
circular order, which the free-ring rule depends on.
"""
from __future__ import annotations

from collections import deque
from typing import Dict, Iterable

from .errors import InvalidStateError
from .models import Ring

__all__ = ["BoardManager", "BOARD_LAYOUTS", "HEX_DIRECTIONS"]

Board = Dict[str, Ring]

# (dq, dr) in circular order: E, NE, NW, W, SW, SE.
HEX_DIRECTIONS: tuple[tuple[int, int], ...] = (
    (1, 0),
    (1, -1),
    (0, -1),
    (-1, 0),
    (-1, 1),
    (0, 1),
)


def _hex_rows(edge_top: int, widest: int, rows: int) -> tuple[tuple[int, int, int], ...]:
    """Row table ``(r, q_start, length)`` for a Zertz hexagon.

    Upper rows grow leftwards against a fixed right edge until the widest
    row; lower rows keep the left edge and shrink from the right.
    """
    table = []
    right_edge = edge_top - 1
    for r in range(rows):
        if edge_top + r <= widest:
            length = edge_top + r
            q_start = right_edge - length + 1
        else:
            length = widest - (r - (widest - edge_top))
            q_start = right_edge - widest + 1
        table.append((r, q_start, length))
    return tuple(table)


BOARD_LAYOUTS: dict[int, tuple[tuple[int, int, int], ...]] = {
    37: _hex_rows(edge_top=4, widest=7, rows=7),
    48: _hex_rows(edge_top=4, widest=8, rows=8),
    61: _hex_rows(edge_top=5, widest=9, rows=9),
}


class BoardManager:
    """Topology queries over a ring mapping.

    Every helper is side-effect-free; callers pass in the ring mapping
    and receive derived views. Nothing here knows about marbles beyond
    "occupied or empty".
    """

    @staticmethod
    def coord_to_id(q: int, r: int) -> str:
        return f"{q},{r}"

    @staticmethod
    def id_to_coord(ring_id: str) -> tuple[int, int]:
        q_str, r_str = ring_id.split(",")
        return int(q_str), int(r_str)

    @staticmethod
    def layout_for(size: int) -> tuple[tuple[int, int, int], ...]:
        layout = BOARD_LAYOUTS.get(size)
        if layout is None:
            raise InvalidStateError(
                f"Unsupported board size {size}",
                context={"supported": sorted(BOARD_LAYOUTS)},
            )
        return layout

    @staticmethod
    def create_board(size: int = 37) -> Board:
        """Build the full ring mapping for a 37, 48 or 61 ring board."""
        rings: Board = {}
        for r, q_start, length in BoardManager.layout_for(size):
            for q in range(q_start, q_start + length):
                ring_id = BoardManager.coord_to_id(q, r)
                rings[ring_id] = Ring(id=ring_id, q=q, r=r)
        return rings

    @staticmethod
    def _bounds(size: int) -> tuple[int, int]:
        """Return (min_q, max_r) of the board's bounding box."""
        layout = BoardManager.layout_for(size)
        min_q = min(q_start for _, q_start, _ in layout)
        max_r = max(r for r, _, _ in layout)
        return min_q, max_r

    @staticmethod
    def id_to_algebraic(ring_id: str, size: int = 37) -> str:
        """Axial id -> display label such as ``d4``.

        Columns are letters counted from the smallest q; rows count up
        from the bottom row of the board.
        """
        q, r = BoardManager.id_to_coord(ring_id)
        min_q, max_r = BoardManager._bounds(size)
        col = chr(ord("a") + q - min_q)
        row = max_r - r + 1
        return f"{col}{row}"

    @staticmethod
    def algebraic_to_id(label: str, size: int = 37) -> str:
        """Inverse of :meth:`id_to_algebraic`. Does not check membership."""
        label = label.strip().lower()
        if len(label) < 2 or not label[0].isalpha() or not label[1:].isdigit():
            raise ValueError(f"Not an algebraic coordinate: {label!r}")
        min_q, max_r = BoardManager._bounds(size)
        q = ord(label[0]) - ord("a") + min_q
        r = max_r - int(label[1:]) + 1
        return BoardManager.coord_to_id(q, r)

    @staticmethod
    def _is_present(ring_id: str, rings: Board) -> bool:
        ring = rings.get(ring_id)
        return ring is not None and not ring.is_removed

    @staticmethod
    def get_neighbor_ids(ring_id: str, rings: Board) -> list[str]:
        """Ids of existing, non-removed rings adjacent to ``ring_id``."""
        q, r = BoardManager.id_to_coord(ring_id)
        neighbors = []
        for dq, dr in HEX_DIRECTIONS:
            neighbor_id = BoardManager.coord_to_id(q + dq, r + dr)
            if BoardManager._is_present(neighbor_id, rings):
                neighbors.append(neighbor_id)
        return neighbors

    @staticmethod
    def get_ring_behind(from_id: str, middle_id: str, rings: Board) -> str | None:
        """Landing ring when jumping from ``from_id`` over ``middle_id``."""
        fq, fr = BoardManager.id_to_coord(from_id)
        mq, mr = BoardManager.id_to_coord(middle_id)
        behind_id = BoardManager.coord_to_id(mq + (mq - fq), mr + (mr - fr))
        if BoardManager._is_present(behind_id, rings):
            return behind_id
        return None

    @staticmethod
    def _free_edge_flags(ring_id: str, rings: Board) -> list[bool]:
        q, r = BoardManager.id_to_coord(ring_id)
        return [
            not BoardManager._is_present(BoardManager.coord_to_id(q + dq, r + dr), rings)
            for dq, dr in HEX_DIRECTIONS
        ]

    @staticmethod
    def count_free_edges(ring_id: str, rings: Board) -> int:
        return sum(BoardManager._free_edge_flags(ring_id, rings))

    @staticmethod
    def has_two_adjacent_free_edges(ring_id: str, rings: Board) -> bool:
        """True when two circularly consecutive directions are open.

        A ring with free edges only on opposite sides cannot be slid out
        of the board and therefore does not qualify.
        """
        flags = BoardManager._free_edge_flags(ring_id, rings)
        count = len(flags)
        return any(flags[i] and flags[(i + 1) % count] for i in range(count))

    @staticmethod
    def is_free_ring(ring_id: str, rings: Board) -> bool:
        ring = rings.get(ring_id)
        if ring is None or ring.is_removed or ring.marble is not None:
            return False
        return BoardManager.has_two_adjacent_free_edges(ring_id, rings)

    @staticmethod
    def _present_ids(rings: Board) -> list[str]:
        """Present ring ids in row-major ``(r, q)`` order."""
        present = [ring for ring in rings.values() if not ring.is_removed]
        present.sort(key=lambda ring: (ring.r, ring.q))
        return [ring.id for ring in present]

    @staticmethod
    def _flood(start: str, rings: Board, visited: set[str]) -> list[str]:
        group = [start]
        visited.add(start)
        queue = deque([start])
        while queue:
            current = queue.popleft()
            for neighbor_id in BoardManager.get_neighbor_ids(current, rings):
                if neighbor_id not in visited:
                    visited.add(neighbor_id)
                    group.append(neighbor_id)
                    queue.append(neighbor_id)
        return group

    @staticmethod
    def would_disconnect_board(ring_id: str, rings: Board) -> bool:
        """Would removing ``ring_id`` split the remaining rings?

        Works on a scratch copy of the mapping; ``rings`` is untouched.
        """
        ring = rings.get(ring_id)
        if ring is None:
            return True

        scratch = dict(rings)
        scratch[ring_id] = ring.model_copy(update={"is_removed": True})

        remaining = BoardManager._present_ids(scratch)
        if not remaining:
            return False

        reached = BoardManager._flood(remaining[0], scratch, set())
        return len(reached) != len(remaining)

    @staticmethod
    def get_valid_removable_rings(rings: Board) -> list[str]:
        """All free rings.

        Removal may disconnect the board; isolated groups are handled by
        the engine's auto-capture, not rejected here.
        """
        return [
            ring_id
            for ring_id in BoardManager._present_ids(rings)
            if BoardManager.is_free_ring(ring_id, rings)
        ]

    @staticmethod
    def get_isolated_groups(rings: Board) -> list[list[str]]:
        """Partition present rings into connected components.

        Components are emitted in the order their first ring appears in
        row-major ``(r, q)`` order.
        """
        visited: set[str] = set()
        groups = []
        for ring_id in BoardManager._present_ids(rings):
            if ring_id in visited:
                continue
            groups.append(BoardManager._flood(ring_id, rings, visited))
        return groups

    @staticmethod
    def get_empty_rings(rings: Board) -> list[str]:
        return [
            ring_id
            for ring_id in BoardManager._present_ids(rings)
            if rings[ring_id].marble is None
        ]

    @staticmethod
    def count_marbles(rings: Iterable[Ring]) -> int:
        return sum(
            1 for ring in rings if not ring.is_removed and ring.marble is not None
        )
