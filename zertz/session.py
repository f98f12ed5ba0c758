"""One game in progress: state, move tree and the current position.

``GameSession`` is the context object hosts hold per game (a local
board, an online room). It drives the engine the way a player does,
including the two-step placement turn (place, then remove a ring), and
keeps the move tree in step: new moves from a position that already has
a continuation become variations, undo detaches the current node, and
navigation rebuilds the state by replaying the path from the root
position the session was started from.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from .board_manager import BoardManager
from .errors import SerializationError
from .game_engine import AvailableMoves, GameEngine, MoveResult
from .models import CaptureMove, GameNode, GamePhase, GameState, MarbleColor, Move, PlayerId, WinType
from .move_tree import MoveTree
from .notation import move_to_notation
from .serialization import state_from_dict, state_to_dict, tree_from_dict, tree_to_dict

logger = logging.getLogger(__name__)


class GameSession:
    def __init__(
        self,
        board_size: Optional[int] = None,
        state: Optional[GameState] = None,
        tree: Optional[MoveTree] = None,
        current_node_id: Optional[str] = None,
        root_state: Optional[GameState] = None,
    ) -> None:
        self.state = state if state is not None else GameEngine.create_initial_state(board_size)
        # Position the tree root stands for; replays start here.
        self.root_state = (root_state if root_state is not None else self.state).clone()
        self.board_size = self.state.board_size
        self.tree = tree if tree is not None else MoveTree()
        self.current_node_id = current_node_id or self.tree.root_id
        self.win_type: Optional[WinType] = (
            GameEngine.get_win_type(self.state, self.state.winner)
            if self.state.winner is not None
            else None
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def current_node(self) -> GameNode:
        return self.tree.get_node(self.current_node_id)

    @property
    def is_over(self) -> bool:
        return self.state.phase == GamePhase.GAME_OVER

    def removable_rings(self) -> List[str]:
        return BoardManager.get_valid_removable_rings(self.state.rings)

    def capture_chains(self, ring_id: str) -> List[List[CaptureMove]]:
        return GameEngine.get_capture_chains(self.state, ring_id)

    def available_moves(self) -> AvailableMoves:
        return GameEngine.get_available_moves(self.state)

    # ------------------------------------------------------------------
    # Moves
    # ------------------------------------------------------------------

    def _record(
        self,
        state: GameState,
        move: Move,
        player: PlayerId,
        move_number: int,
        notation: str,
    ) -> GameNode:
        GameEngine.finalize_turn(state)
        node = self.tree.append_move(
            self.current_node_id, move, player, move_number, notation
        )
        self.state = state
        self.current_node_id = node.id
        self.win_type = (
            GameEngine.get_win_type(state, state.winner) if state.winner else None
        )
        return node

    def place_marble(self, ring_id: str, color: MarbleColor) -> bool:
        """First half of a placement turn.

        When no ring can be removed afterwards the turn completes at once
        and is recorded; otherwise the placement waits for
        :meth:`remove_ring`.
        """
        state = self.state
        if state.phase != GamePhase.PLACEMENT or GameEngine.has_available_captures(state):
            return False

        new_state = state.clone()
        if not GameEngine.place_marble(new_state, ring_id, color):
            return False

        if BoardManager.get_valid_removable_rings(new_state.rings):
            self.state = new_state
            return True

        GameEngine.skip_ring_removal(new_state)
        move = Move.for_placement(color, ring_id, None)
        self._record(
            new_state,
            move,
            state.current_player,
            state.move_number,
            move_to_notation(move, self.board_size),
        )
        return True

    def remove_ring(self, ring_id: str) -> bool:
        """Second half of a placement turn."""
        state = self.state
        pending = state.pending_placement
        if state.phase != GamePhase.RING_REMOVAL or pending is None:
            return False

        new_state = state.clone()
        if not GameEngine.remove_ring(new_state, ring_id):
            return False

        move = Move.for_placement(pending.marble_color, pending.ring_id, ring_id)
        self._record(
            new_state,
            move,
            state.current_player,
            state.move_number,
            move_to_notation(move, self.board_size),
        )
        return True

    def capture(self, steps: List[CaptureMove]) -> bool:
        if not steps:
            return False
        return self.apply(Move.for_capture(steps)).success

    def apply(self, move: Move) -> MoveResult:
        """Commit a complete move through the unified engine path."""
        result = GameEngine.apply_move(self.state, move)
        if result.success:
            self._record(
                result.state,
                move,
                result.player,
                result.move_number,
                result.notation,
            )
        return result

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def _replay(self, node_id: str) -> GameState:
        state = self.root_state.clone()
        for node in self.tree.path_from_root(node_id):
            result = GameEngine.apply_move(state, node.move, enforce_full_capture=False)
            if not result.success:
                logger.warning(
                    "Replay stopped at node %s: %s", node.id, result.error
                )
                break
            state = result.state
        return state

    def navigate(self, node_id: str) -> None:
        """Show the position after ``node_id``; the tree is unchanged."""
        self.tree.get_node(node_id)
        self.state = self._replay(node_id)
        self.current_node_id = node_id
        self.win_type = (
            GameEngine.get_win_type(self.state, self.state.winner)
            if self.state.winner
            else None
        )

    def undo(self) -> bool:
        """Drop the current node and step back to its parent.

        A placement still waiting for its ring removal is cancelled
        instead.
        """
        if self.state.phase == GamePhase.RING_REMOVAL:
            self.navigate(self.current_node_id)
            return True

        if self.current_node_id == self.tree.root_id:
            return False

        parent = self.tree.detach(self.current_node_id)
        self.navigate(parent.id)
        return True

    # ------------------------------------------------------------------
    # Persistence hooks
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "boardSize": self.board_size,
            "rootState": state_to_dict(self.root_state),
            "state": state_to_dict(self.state),
            "tree": tree_to_dict(self.tree),
            "currentNodeId": self.current_node_id,
            "winType": self.win_type.value if self.win_type else None,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "GameSession":
        if not isinstance(payload, dict) or "state" not in payload or "tree" not in payload:
            raise SerializationError("Session payload must contain 'state' and 'tree'")
        state = state_from_dict(payload["state"])
        tree = tree_from_dict(payload["tree"])
        current = payload.get("currentNodeId") or tree.root_id
        if current not in tree:
            raise SerializationError(
                "Current node is not part of the tree", context={"node_id": current}
            )
        if payload.get("rootState") is not None:
            root_state = state_from_dict(payload["rootState"])
        else:
            root_state = GameEngine.create_initial_state(state.board_size)
        return cls(state=state, tree=tree, current_node_id=current, root_state=root_state)
