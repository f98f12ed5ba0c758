"""Core game engine for Zertz.

The engine is a set of state-transition functions over ``GameState``.

Mutation discipline:

- The primitives (``place_marble``, ``remove_ring``, ``skip_ring_removal``,
  ``execute_capture``) mutate the state they are given. Callers clone
  first when the previous position must survive (undo, navigation,
  what-if search).
- ``apply_move`` is the unified commit used by every host. It clones,
  validates one full logical turn, applies it and settles the phase
  (win check, mandatory capture, next placement) so that single-player
  and online hosts cannot drift apart.

Illegal moves are reported through ``False`` / ``MoveResult.success``;
the rules path never raises for them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import List, Optional

from . import config
from .board_manager import BoardManager
from .models import (
    CaptureMove,
    ColorCounts,
    GamePhase,
    GameState,
    MarbleColor,
    Marble,
    Move,
    MoveType,
    PendingPlacement,
    PlacementMove,
    PlayerCaptures,
    PlayerId,
    WinType,
)
from .notation import move_to_notation

logger = logging.getLogger(__name__)

INITIAL_RESERVE = {"white": 6, "gray": 8, "black": 10}

# Single-colour thresholds plus the "three of each" mixed condition.
WIN_CONDITIONS = {"white": 4, "gray": 5, "black": 6, "all_colors": 3}


@dataclass
class PlacementOption:
    """An empty ring and the colours the mover may put on it."""
    ring_id: str
    colors: List[MarbleColor]


@dataclass
class AvailableMoves:
    """Legal move summary for the player to move.

    When any capture exists ``type`` is CAPTURE and ``captures`` lists the
    single jumps (capturing is mandatory); otherwise ``placements`` lists
    every empty ring with the placeable colours.
    """
    type: MoveType
    captures: List[CaptureMove] = field(default_factory=list)
    placements: List[PlacementOption] = field(default_factory=list)


@dataclass
class MoveResult:
    """Outcome of :meth:`GameEngine.apply_move`.

    Attributes:
        success: Whether the move was legal and applied.
        state: The new state on success, the untouched input otherwise.
        move: The committed move (``removed_ring_id`` back-filled).
        notation: Display notation of the committed move.
        winner: Set when the move ended the game.
        win_type: Threshold that decided the game.
        error: Why the move was rejected.
        rule_ref: Short name of the rule that rejected the move.
        player: Who made the move.
        move_number: Move number the move was played at.
    """
    success: bool
    state: GameState
    move: Optional[Move] = None
    notation: str = ""
    winner: Optional[PlayerId] = None
    win_type: Optional[WinType] = None
    error: Optional[str] = None
    rule_ref: Optional[str] = None
    player: Optional[PlayerId] = None
    move_number: Optional[int] = None


class GameEngine:
    """Zertz rules: placement, ring removal, captures, isolation, wins."""

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @staticmethod
    def create_initial_state(board_size: Optional[int] = None) -> GameState:
        size = board_size if board_size is not None else config.DEFAULT_BOARD_SIZE
        return GameState(
            rings=BoardManager.create_board(size),
            board_size=size,
            reserve=ColorCounts(**INITIAL_RESERVE),
            current_player=PlayerId.PLAYER1,
            captures=PlayerCaptures(),
            phase=GamePhase.PLACEMENT,
            pending_placement=None,
            winner=None,
            move_number=1,
        )

    @staticmethod
    def clone_state(state: GameState) -> GameState:
        return state.clone()

    # ------------------------------------------------------------------
    # Captures
    # ------------------------------------------------------------------

    @staticmethod
    def _single_captures_from(state: GameState, ring_id: str) -> List[CaptureMove]:
        rings = state.rings
        ring = rings.get(ring_id)
        if ring is None or ring.is_removed or ring.marble is None:
            return []

        captures = []
        for neighbor_id in BoardManager.get_neighbor_ids(ring_id, rings):
            if rings[neighbor_id].marble is None:
                continue
            behind_id = BoardManager.get_ring_behind(ring_id, neighbor_id, rings)
            if behind_id is None or rings[behind_id].marble is not None:
                continue
            captures.append(
                CaptureMove(from_ring=ring_id, to=behind_id, captured=neighbor_id)
            )
        return captures

    @staticmethod
    def get_available_captures(state: GameState) -> List[CaptureMove]:
        """Every single jump available on the board, from any marble."""
        captures: List[CaptureMove] = []
        for ring_id in state.rings:
            captures.extend(GameEngine._single_captures_from(state, ring_id))
        return captures

    @staticmethod
    def has_available_captures(state: GameState) -> bool:
        return any(
            GameEngine._single_captures_from(state, ring_id)
            for ring_id in state.rings
        )

    @staticmethod
    def get_capture_chains(state: GameState, from_ring_id: str) -> List[List[CaptureMove]]:
        """All maximal capture chains for the marble on ``from_ring_id``.

        Each jump is simulated on a clone; a chain is recorded only once
        the landing ring offers no further jump, so partial chains never
        appear as separate entries.
        """
        chains: List[List[CaptureMove]] = []

        def explore(current: GameState, ring_id: str, chain: List[CaptureMove]) -> None:
            continuations = GameEngine._single_captures_from(current, ring_id)
            if not continuations:
                if chain:
                    chains.append(chain)
                return
            for capture in continuations:
                following = current.clone()
                GameEngine.execute_capture_step(following, capture)
                explore(following, capture.to, chain + [capture])

        explore(state, from_ring_id, [])
        return chains

    @staticmethod
    def execute_capture_step(state: GameState, capture: CaptureMove) -> bool:
        """Move the jumping marble and credit the jumped one to the mover.

        A step whose rings lack the expected marbles is ignored.
        """
        rings = state.rings
        from_ring = rings.get(capture.from_ring)
        to_ring = rings.get(capture.to)
        captured_ring = rings.get(capture.captured)

        if from_ring is None or to_ring is None or captured_ring is None:
            return False
        if from_ring.marble is None or captured_ring.marble is None:
            return False

        to_ring.marble = from_ring.marble
        from_ring.marble = None

        state.player_captures().add(captured_ring.marble.color)
        captured_ring.marble = None
        return True

    @staticmethod
    def execute_capture(state: GameState, captures: List[CaptureMove]) -> None:
        """Apply a whole chain and pass the turn.

        The chain is trusted to be maximal; phase handling is left to the
        caller (see :meth:`finalize_turn`).
        """
        for capture in captures:
            GameEngine.execute_capture_step(state, capture)

        state.current_player = state.current_player.opponent
        state.move_number += 1

    @staticmethod
    def validate_capture_chain(state: GameState, steps: List[CaptureMove]) -> Optional[str]:
        """Return why ``steps`` is not a legal chain, or None if it is."""
        if not steps:
            return "capture chain is empty"

        simulated = state.clone()
        position = steps[0].from_ring
        for index, step in enumerate(steps):
            if step.from_ring != position:
                return f"step {index + 1} does not start where the previous jump landed"
            legal = {
                (c.to, c.captured)
                for c in GameEngine._single_captures_from(simulated, step.from_ring)
            }
            if (step.to, step.captured) not in legal:
                return f"step {index + 1} is not a legal jump"
            GameEngine.execute_capture_step(simulated, step)
            position = step.to
        return None

    @staticmethod
    def is_maximal_chain(state: GameState, steps: List[CaptureMove]) -> bool:
        """True iff ``steps`` is legal and cannot be extended."""
        if GameEngine.validate_capture_chain(state, steps) is not None:
            return False
        simulated = state.clone()
        for step in steps:
            GameEngine.execute_capture_step(simulated, step)
        return not GameEngine._single_captures_from(simulated, steps[-1].to)

    # ------------------------------------------------------------------
    # Placement and ring removal
    # ------------------------------------------------------------------

    @staticmethod
    def get_empty_rings(state: GameState) -> List[str]:
        return BoardManager.get_empty_rings(state.rings)

    @staticmethod
    def _marble_source(state: GameState) -> ColorCounts:
        """Shared reserve until it is fully spent, then the mover's captures."""
        if state.reserve.total() > 0:
            return state.reserve
        return state.player_captures()

    @staticmethod
    def can_place_marble(state: GameState, color: MarbleColor) -> bool:
        return GameEngine._marble_source(state).get(color) > 0

    @staticmethod
    def get_available_colors(state: GameState) -> List[MarbleColor]:
        source = GameEngine._marble_source(state)
        return [color for color in MarbleColor if source.get(color) > 0]

    @staticmethod
    def place_marble(state: GameState, ring_id: str, color: MarbleColor) -> bool:
        if state.phase == GamePhase.GAME_OVER:
            return False
        ring = state.rings.get(ring_id)
        if ring is None or ring.is_removed or ring.marble is not None:
            return False

        source = GameEngine._marble_source(state)
        if source.get(color) <= 0:
            return False
        source.add(color, -1)

        ring.marble = Marble(color=color)
        state.pending_placement = PendingPlacement(ring_id=ring_id, marble_color=color)
        state.phase = GamePhase.RING_REMOVAL
        return True

    @staticmethod
    def _end_placement_turn(state: GameState) -> None:
        state.pending_placement = None
        state.phase = GamePhase.PLACEMENT
        state.current_player = state.current_player.opponent
        state.move_number += 1

    @staticmethod
    def remove_ring(state: GameState, ring_id: str) -> bool:
        if state.phase == GamePhase.GAME_OVER:
            return False
        if ring_id not in BoardManager.get_valid_removable_rings(state.rings):
            return False

        state.rings[ring_id].is_removed = True
        GameEngine._handle_isolation(state)
        GameEngine._end_placement_turn(state)
        return True

    @staticmethod
    def skip_ring_removal(state: GameState) -> bool:
        """Finish a placement turn when no ring can be removed.

        Only valid while a placement is waiting for its ring removal.
        """
        if state.phase != GamePhase.RING_REMOVAL:
            return False
        if BoardManager.get_valid_removable_rings(state.rings):
            return False
        GameEngine._end_placement_turn(state)
        return True

    @staticmethod
    def _handle_isolation(state: GameState) -> List[str]:
        """Capture fully occupied groups cut off from the main board.

        The main board is the largest component; on equal sizes the one
        reached first in row-major order wins. Detached groups that still
        contain an empty ring stay in play.
        """
        groups = BoardManager.get_isolated_groups(state.rings)
        if len(groups) <= 1:
            return []

        main_index = 0
        for index, group in enumerate(groups):
            if len(group) > len(groups[main_index]):
                main_index = index

        pool = state.player_captures()
        captured: List[str] = []
        for index, group in enumerate(groups):
            if index == main_index:
                continue
            if any(state.rings[ring_id].marble is None for ring_id in group):
                continue
            for ring_id in group:
                ring = state.rings[ring_id]
                pool.add(ring.marble.color)
                ring.marble = None
                ring.is_removed = True
                captured.append(ring_id)

        if captured:
            logger.debug(
                "%s captured isolated rings %s",
                state.current_player.value,
                captured,
            )
        return captured

    # ------------------------------------------------------------------
    # Winning
    # ------------------------------------------------------------------

    @staticmethod
    def _meets_threshold(caps: ColorCounts) -> bool:
        if caps.white >= WIN_CONDITIONS["white"]:
            return True
        if caps.gray >= WIN_CONDITIONS["gray"]:
            return True
        if caps.black >= WIN_CONDITIONS["black"]:
            return True
        threshold = WIN_CONDITIONS["all_colors"]
        return caps.white >= threshold and caps.gray >= threshold and caps.black >= threshold

    @staticmethod
    def check_win_condition(state: GameState) -> Optional[PlayerId]:
        """Return the winner; player1 is checked before player2."""
        for player in (PlayerId.PLAYER1, PlayerId.PLAYER2):
            if GameEngine._meets_threshold(state.captures.for_player(player)):
                return player
        return None

    @staticmethod
    def get_win_type(state: GameState, winner: PlayerId) -> WinType:
        caps = state.captures.for_player(winner)
        if caps.white >= WIN_CONDITIONS["white"]:
            return WinType.WHITE
        if caps.gray >= WIN_CONDITIONS["gray"]:
            return WinType.GRAY
        if caps.black >= WIN_CONDITIONS["black"]:
            return WinType.BLACK
        threshold = WIN_CONDITIONS["all_colors"]
        if caps.white >= threshold and caps.gray >= threshold and caps.black >= threshold:
            return WinType.MIXED
        return WinType.UNKNOWN

    # ------------------------------------------------------------------
    # Move listing
    # ------------------------------------------------------------------

    @staticmethod
    def get_available_moves(state: GameState) -> AvailableMoves:
        captures = GameEngine.get_available_captures(state)
        if captures:
            return AvailableMoves(type=MoveType.CAPTURE, captures=captures)

        colors = GameEngine.get_available_colors(state)
        return AvailableMoves(
            type=MoveType.PLACEMENT,
            placements=[
                PlacementOption(ring_id=ring_id, colors=list(colors))
                for ring_id in GameEngine.get_empty_rings(state)
            ],
        )

    # ------------------------------------------------------------------
    # Unified commit
    # ------------------------------------------------------------------

    @staticmethod
    def finalize_turn(state: GameState) -> Optional[PlayerId]:
        """Settle the phase after a completed turn.

        Sets the winner and ``gameOver`` when a threshold is met; otherwise
        the next phase is ``capture`` if the player to move must capture,
        ``placement`` if not.
        """
        if state.phase == GamePhase.GAME_OVER:
            return state.winner

        winner = GameEngine.check_win_condition(state)
        if winner is not None:
            state.winner = winner
            state.phase = GamePhase.GAME_OVER
            state.pending_placement = None
            logger.info(
                "Game over: %s wins (%s)",
                winner.value,
                GameEngine.get_win_type(state, winner).value,
            )
        elif GameEngine.has_available_captures(state):
            state.phase = GamePhase.CAPTURE
        else:
            state.phase = GamePhase.PLACEMENT
        return winner

    @staticmethod
    def _reject(state: GameState, error: str, rule_ref: str) -> MoveResult:
        logger.debug("Rejected move (%s): %s", rule_ref, error)
        return MoveResult(success=False, state=state, error=error, rule_ref=rule_ref)

    @staticmethod
    def apply_move(
        state: GameState,
        move: Move,
        enforce_full_capture: Optional[bool] = None,
    ) -> MoveResult:
        """Validate and commit one full turn on a clone of ``state``."""
        if enforce_full_capture is None:
            enforce_full_capture = config.ENFORCE_FULL_CAPTURE

        if state.phase == GamePhase.GAME_OVER:
            return GameEngine._reject(state, "the game is over", "game-over")
        if state.phase == GamePhase.RING_REMOVAL:
            return GameEngine._reject(
                state, "a pending placement awaits its ring removal", "ring-removal"
            )

        # Moves built with model_construct skip the tag check on Move.
        expected = PlacementMove if move.type == MoveType.PLACEMENT else CaptureMove
        if not isinstance(move.data, expected):
            return GameEngine._reject(
                state, f"{move.type.value} move carries the wrong data", "move"
            )

        player = state.current_player
        move_number = state.move_number
        capturing_color: Optional[MarbleColor] = None

        if move.type == MoveType.PLACEMENT:
            data: PlacementMove = move.data  # type: ignore[assignment]
            if GameEngine.has_available_captures(state):
                return GameEngine._reject(
                    state, "a capture is available and must be made", "mandatory-capture"
                )

            new_state = state.clone()
            if not GameEngine.place_marble(new_state, data.ring_id, data.marble_color):
                return GameEngine._reject(
                    state, "marble cannot be placed there", "placement"
                )

            if data.removed_ring_id is None:
                if not GameEngine.skip_ring_removal(new_state):
                    return GameEngine._reject(
                        state, "a free ring must be removed", "ring-removal"
                    )
            elif not GameEngine.remove_ring(new_state, data.removed_ring_id):
                return GameEngine._reject(
                    state, "that ring cannot be removed", "ring-removal"
                )
        else:
            steps = move.capture_steps()
            error = GameEngine.validate_capture_chain(state, steps)
            if error is not None:
                return GameEngine._reject(state, error, "capture")
            if enforce_full_capture and not GameEngine.is_maximal_chain(state, steps):
                return GameEngine._reject(
                    state, "the capture chain must be continued", "full-capture"
                )

            capturing_color = state.rings[steps[0].from_ring].marble.color
            new_state = state.clone()
            GameEngine.execute_capture(new_state, steps)
            new_state.pending_placement = None

        winner = GameEngine.finalize_turn(new_state)
        return MoveResult(
            success=True,
            state=new_state,
            move=move,
            notation=move_to_notation(move, state.board_size, capturing_color),
            winner=winner,
            win_type=GameEngine.get_win_type(new_state, winner) if winner else None,
            player=player,
            move_number=move_number,
        )
