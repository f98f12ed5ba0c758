"""Game history with variations.

Nodes live in a flat table keyed by id; each node keeps its parent id
and the ordered ids of its children. The first child of a node is the
main line from that position, later children are variations. The
``is_main_line`` flag on a node is informational only.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional

from .errors import InvalidStateError
from .models import GameNode, Move, PlayerId

logger = logging.getLogger(__name__)

ROOT_ID = "root"


class MoveTree:
    """Arena-backed move tree."""

    def __init__(self) -> None:
        self.nodes: Dict[str, GameNode] = {}
        self.root_id = ROOT_ID
        self._sequence = 0
        self.nodes[ROOT_ID] = self.create_root()

    @staticmethod
    def create_root() -> GameNode:
        return GameNode(
            id=ROOT_ID,
            move_number=0,
            player=PlayerId.PLAYER1,
            move=None,
            notation="",
            children=[],
            parent_id=None,
            is_main_line=True,
        )

    @property
    def root(self) -> GameNode:
        return self.nodes[self.root_id]

    def get_node(self, node_id: str) -> GameNode:
        node = self.nodes.get(node_id)
        if node is None:
            raise InvalidStateError(
                "Unknown move tree node", context={"node_id": node_id}
            )
        return node

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def _next_id(self, move_number: int) -> str:
        self._sequence += 1
        node_id = f"{move_number}-{self._sequence}"
        while node_id in self.nodes:
            self._sequence += 1
            node_id = f"{move_number}-{self._sequence}"
        return node_id

    def append_move(
        self,
        parent_id: str,
        move: Move,
        player: PlayerId,
        move_number: int,
        notation: str = "",
    ) -> GameNode:
        """Record ``move`` as a new child of ``parent_id``."""
        parent = self.get_node(parent_id)
        node = GameNode(
            id=self._next_id(move_number),
            move_number=move_number,
            player=player,
            move=move,
            notation=notation,
            children=[],
            parent_id=parent.id,
            is_main_line=not parent.children,
        )
        self.nodes[node.id] = node
        parent.children.append(node.id)
        return node

    def add_node(self, node: GameNode) -> None:
        """Insert a node that already carries its links (deserialisation)."""
        self.nodes[node.id] = node

    def children(self, node_id: str) -> List[GameNode]:
        return [self.nodes[child_id] for child_id in self.get_node(node_id).children]

    def parent(self, node_id: str) -> Optional[GameNode]:
        parent_id = self.get_node(node_id).parent_id
        return self.nodes[parent_id] if parent_id is not None else None

    def variations(self, node_id: str) -> List[GameNode]:
        return self.children(node_id)[1:]

    def path_from_root(self, node_id: str) -> List[GameNode]:
        """Nodes from just below the root down to ``node_id`` inclusive."""
        path = []
        node: Optional[GameNode] = self.get_node(node_id)
        while node is not None and node.parent_id is not None:
            path.append(node)
            node = self.nodes.get(node.parent_id)
        path.reverse()
        return path

    def main_line(self, node_id: Optional[str] = None) -> List[GameNode]:
        """Follow first children from ``node_id`` (default: root)."""
        line = []
        node = self.get_node(node_id or self.root_id)
        while node.children:
            node = self.nodes[node.children[0]]
            line.append(node)
        return line

    def detach(self, node_id: str) -> Optional[GameNode]:
        """Remove a node and its subtree; return its parent.

        Sibling order of the remaining children is preserved.
        """
        node = self.get_node(node_id)
        if node.parent_id is None:
            raise InvalidStateError("The root node cannot be detached")

        parent = self.nodes[node.parent_id]
        parent.children.remove(node_id)
        for dropped in list(self.walk(node_id)):
            del self.nodes[dropped.id]
        logger.debug("Detached node %s from %s", node_id, parent.id)
        return parent

    def walk(self, node_id: Optional[str] = None) -> Iterator[GameNode]:
        """Depth-first, pre-order traversal."""
        stack = [node_id or self.root_id]
        while stack:
            node = self.nodes[stack.pop()]
            yield node
            stack.extend(reversed(node.children))
