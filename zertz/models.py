"""
Pydantic Models for Zertz Game State
Field aliases follow the camelCase wire format used by the web client.
"""

from pydantic import BaseModel, Field, model_validator
from typing import Optional, List, Dict, Union
from enum import Enum


class MarbleColor(str, Enum):
    """Marble colour enumeration"""
    WHITE = "white"
    GRAY = "gray"
    BLACK = "black"

    @property
    def initial(self) -> str:
        return self.value[0].upper()


class PlayerId(str, Enum):
    """Player enumeration"""
    PLAYER1 = "player1"
    PLAYER2 = "player2"

    @property
    def opponent(self) -> "PlayerId":
        if self is PlayerId.PLAYER1:
            return PlayerId.PLAYER2
        return PlayerId.PLAYER1


class GamePhase(str, Enum):
    """Game phase enumeration"""
    PLACEMENT = "placement"
    RING_REMOVAL = "ringRemoval"
    CAPTURE = "capture"
    GAME_OVER = "gameOver"


class MoveType(str, Enum):
    """Move type enumeration"""
    PLACEMENT = "placement"
    CAPTURE = "capture"


class WinType(str, Enum):
    """Which threshold decided the game (display only)"""
    WHITE = "white"
    GRAY = "gray"
    BLACK = "black"
    MIXED = "mixed"
    UNKNOWN = "unknown"


class Marble(BaseModel):
    """Marble resting on a ring"""
    color: MarbleColor


class Ring(BaseModel):
    """Board ring keyed by its axial coordinate"""
    id: str
    q: int
    r: int
    marble: Optional[Marble] = None
    is_removed: bool = Field(False, alias="isRemoved")

    class Config:
        populate_by_name = True


class ColorCounts(BaseModel):
    """Marble counts per colour (reserve or capture pool)"""
    white: int = Field(0, ge=0)
    gray: int = Field(0, ge=0)
    black: int = Field(0, ge=0)

    def get(self, color: MarbleColor) -> int:
        return getattr(self, MarbleColor(color).value)

    def add(self, color: MarbleColor, amount: int = 1) -> None:
        key = MarbleColor(color).value
        setattr(self, key, getattr(self, key) + amount)

    def total(self) -> int:
        return self.white + self.gray + self.black


class PlayerCaptures(BaseModel):
    """Capture pools for both players"""
    player1: ColorCounts = Field(default_factory=ColorCounts)
    player2: ColorCounts = Field(default_factory=ColorCounts)

    def for_player(self, player: PlayerId) -> ColorCounts:
        return getattr(self, PlayerId(player).value)


class PendingPlacement(BaseModel):
    """Placement waiting for its ring removal"""
    ring_id: str = Field(alias="ringId")
    marble_color: MarbleColor = Field(alias="marbleColor")

    class Config:
        populate_by_name = True


class CaptureMove(BaseModel):
    """One jump: the marble on ``from`` jumps ``captured`` and lands on ``to``.

    The first step of a recorded capture carries the rest of the chain in
    ``chain``; simulated steps leave it empty.
    """
    from_ring: str = Field(alias="from")
    to: str
    captured: str
    chain: List["CaptureMove"] = Field(default_factory=list)

    class Config:
        populate_by_name = True

    def without_chain(self) -> "CaptureMove":
        return CaptureMove(from_ring=self.from_ring, to=self.to, captured=self.captured)


CaptureMove.model_rebuild()


class PlacementMove(BaseModel):
    """Marble placement plus the ring removed in the same turn"""
    marble_color: MarbleColor = Field(alias="marbleColor")
    ring_id: str = Field(alias="ringId")
    removed_ring_id: Optional[str] = Field(None, alias="removedRingId")

    class Config:
        populate_by_name = True


class Move(BaseModel):
    """Tagged move, ``{"type": ..., "data": ...}`` on the wire."""
    type: MoveType
    data: Union[PlacementMove, CaptureMove]

    @model_validator(mode="after")
    def _data_matches_type(self) -> "Move":
        expected = PlacementMove if self.type == MoveType.PLACEMENT else CaptureMove
        if not isinstance(self.data, expected):
            raise ValueError(
                f"{self.type.value} move carries {type(self.data).__name__} data"
            )
        return self

    @classmethod
    def for_placement(
        cls,
        color: MarbleColor,
        ring_id: str,
        removed_ring_id: Optional[str] = None,
    ) -> "Move":
        return cls(
            type=MoveType.PLACEMENT,
            data=PlacementMove(
                marble_color=color,
                ring_id=ring_id,
                removed_ring_id=removed_ring_id,
            ),
        )

    @classmethod
    def for_capture(cls, steps: List[CaptureMove]) -> "Move":
        if not steps:
            raise ValueError("A capture move needs at least one step")
        head = steps[0].without_chain()
        head.chain = [step.without_chain() for step in steps[1:]]
        return cls(type=MoveType.CAPTURE, data=head)

    def capture_steps(self) -> List[CaptureMove]:
        """Flatten a capture move into its ordered jump list."""
        if self.type != MoveType.CAPTURE or not isinstance(self.data, CaptureMove):
            return []
        return [self.data.without_chain()] + [
            step.without_chain() for step in self.data.chain
        ]


class GameState(BaseModel):
    """Complete game state"""
    rings: Dict[str, Ring]
    board_size: int = Field(37, alias="boardSize")
    reserve: ColorCounts
    current_player: PlayerId = Field(PlayerId.PLAYER1, alias="currentPlayer")
    captures: PlayerCaptures = Field(default_factory=PlayerCaptures)
    phase: GamePhase = GamePhase.PLACEMENT
    pending_placement: Optional[PendingPlacement] = Field(
        None, alias="pendingPlacement"
    )
    winner: Optional[PlayerId] = None
    move_number: int = Field(1, alias="moveNumber")

    class Config:
        populate_by_name = True

    def clone(self) -> "GameState":
        """Fully independent copy; speculative play never leaks back."""
        return self.model_copy(deep=True)

    def player_captures(self, player: Optional[PlayerId] = None) -> ColorCounts:
        return self.captures.for_player(player or self.current_player)


class GameNode(BaseModel):
    """Move-tree node. Links are ids into the owning ``MoveTree``."""
    id: str
    move_number: int = Field(alias="moveNumber")
    player: PlayerId
    move: Optional[Move] = None
    notation: str = ""
    children: List[str] = Field(default_factory=list)
    parent_id: Optional[str] = Field(None, alias="parentId")
    is_main_line: bool = Field(True, alias="isMainLine")

    class Config:
        populate_by_name = True
