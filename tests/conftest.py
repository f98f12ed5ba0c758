"""
Shared pytest fixtures for the Zertz engine tests.

Game state fixtures are function-scoped so every test gets its own
independent board.
"""

from pathlib import Path
import sys
from typing import Callable, Dict, Iterable, Optional

import pytest

# Ensure the repository root is on sys.path so `import zertz` works when
# running pytest without installing the package.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from zertz.board_manager import BoardManager  # noqa: E402
from zertz.game_engine import GameEngine  # noqa: E402
from zertz.models import (  # noqa: E402
    ColorCounts,
    GamePhase,
    GameState,
    Marble,
    MarbleColor,
    PlayerId,
)


def total_marbles(state: GameState) -> int:
    """Reserve + both capture pools + marbles on the board."""
    return (
        state.reserve.total()
        + state.captures.player1.total()
        + state.captures.player2.total()
        + BoardManager.count_marbles(state.rings.values())
    )


@pytest.fixture
def fresh_state() -> GameState:
    return GameEngine.create_initial_state(37)


@pytest.fixture
def state_factory() -> Callable[..., GameState]:
    """Factory for hand-built positions.

    ``marbles`` maps ring ids to colours, ``removed`` lists rings already
    taken off the board. Reserve and capture pools default to the start
    of the game unless overridden.
    """

    def _create_state(
        board_size: int = 37,
        marbles: Optional[Dict[str, str]] = None,
        removed: Iterable[str] = (),
        reserve: Optional[Dict[str, int]] = None,
        captures: Optional[Dict[str, Dict[str, int]]] = None,
        current_player: PlayerId = PlayerId.PLAYER1,
        phase: GamePhase = GamePhase.PLACEMENT,
    ) -> GameState:
        state = GameEngine.create_initial_state(board_size)
        for ring_id in removed:
            state.rings[ring_id].is_removed = True
        for ring_id, color in (marbles or {}).items():
            state.rings[ring_id].marble = Marble(color=MarbleColor(color))
        if reserve is not None:
            state.reserve = ColorCounts(**reserve)
        for player, counts in (captures or {}).items():
            setattr(state.captures, player, ColorCounts(**counts))
        state.current_player = current_player
        state.phase = phase
        return state

    return _create_state


@pytest.fixture
def isolation_position(state_factory) -> GameState:
    """Top row cut off from the board except through the corner ring 3,0.

    The three top-row rings hold one marble of each colour; removing 3,0
    isolates them.
    """
    return state_factory(
        marbles={"0,0": "white", "1,0": "gray", "2,0": "black", "0,3": "white"},
        removed=["-1,1", "0,1", "1,1", "2,1"],
        reserve={"white": 4, "gray": 7, "black": 9},
    )
