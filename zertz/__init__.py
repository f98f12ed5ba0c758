"""Zertz rules engine.

Recommended entry points:

    from zertz import GameEngine, GameSession

    session = GameSession(board_size=37)
    session.place_marble("0,3", MarbleColor.WHITE)
    session.remove_ring(session.removable_rings()[0])

Architecture:
- board_manager.py: hex topology, free rings, connectivity
- models.py: pydantic state, move and tree-node models
- game_engine.py: rules, capture chains, isolation, wins, unified commit
- move_tree.py: move history with variations
- session.py: one game in progress (two-step turns, undo, navigation)
- serialization.py: wire format for states and trees
- main.py: stateless FastAPI rules adapter
"""

from .board_manager import BoardManager
from .game_engine import AvailableMoves, GameEngine, MoveResult
from .models import (
    CaptureMove,
    GamePhase,
    GameState,
    MarbleColor,
    Move,
    MoveType,
    PlacementMove,
    PlayerId,
    WinType,
)
from .move_tree import MoveTree
from .session import GameSession

__all__ = [
    "AvailableMoves",
    "BoardManager",
    "CaptureMove",
    "GameEngine",
    "GamePhase",
    "GameSession",
    "GameState",
    "MarbleColor",
    "Move",
    "MoveResult",
    "MoveTree",
    "MoveType",
    "PlacementMove",
    "PlayerId",
    "WinType",
]
