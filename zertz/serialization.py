"""Wire format for game states and move trees.

States carry their rings as an ordered list of ``[id, ring]`` pairs.
Trees are nested node objects; the parent link is written as ``null``
and rebuilt on load by walking the children, so the payload never
contains a cycle. Both shapes match what the web client stores.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from .errors import SerializationError
from .models import GameNode, GameState
from .move_tree import MoveTree

__all__ = [
    "dumps_game",
    "loads_game",
    "state_from_dict",
    "state_to_dict",
    "tree_from_dict",
    "tree_to_dict",
]

_NODE_FIELDS = ("id", "moveNumber", "player", "move", "notation", "isMainLine")


def state_to_dict(state: GameState) -> Dict[str, Any]:
    payload = state.model_dump(by_alias=True, mode="json")
    payload["rings"] = [[ring_id, ring] for ring_id, ring in payload["rings"].items()]
    return payload


def state_from_dict(payload: Dict[str, Any]) -> GameState:
    try:
        data = dict(payload)
        rings = data.get("rings", [])
        if isinstance(rings, list):
            data["rings"] = {ring_id: ring for ring_id, ring in rings}
        return GameState.model_validate(data)
    except ValidationError as e:
        raise SerializationError(
            "Invalid game state payload", context={"errors": e.error_count()}
        ) from e
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Malformed game state payload: {e}") from e


def tree_to_dict(tree: MoveTree, node_id: Optional[str] = None) -> Dict[str, Any]:
    """Nested form of the subtree at ``node_id`` (default: root)."""
    def encode(node: GameNode) -> Dict[str, Any]:
        flat = node.model_dump(by_alias=True, mode="json", exclude={"children", "parent_id"})
        flat["parent"] = None
        flat["children"] = [encode(tree.nodes[child]) for child in node.children]
        return flat

    return encode(tree.get_node(node_id or tree.root_id))


def tree_from_dict(payload: Dict[str, Any]) -> MoveTree:
    """Rebuild a ``MoveTree`` and every parent link from nested form."""
    tree = MoveTree()
    tree.nodes.clear()
    try:
        root_id = payload["id"]
        pending: List[Tuple[Dict[str, Any], Optional[str]]] = [(payload, None)]
        while pending:
            raw, parent_id = pending.pop()
            fields = {key: raw[key] for key in _NODE_FIELDS if key in raw}
            children = raw.get("children") or []
            node = GameNode.model_validate(
                {
                    **fields,
                    "children": [child["id"] for child in children],
                    "parentId": parent_id,
                }
            )
            if node.id in tree.nodes:
                raise SerializationError(
                    "Duplicate node id in move tree", context={"node_id": node.id}
                )
            tree.add_node(node)
            pending.extend((child, node.id) for child in reversed(children))
    except ValidationError as e:
        raise SerializationError(
            "Invalid move tree payload", context={"errors": e.error_count()}
        ) from e
    except (KeyError, TypeError) as e:
        raise SerializationError(f"Malformed move tree payload: {e}") from e

    tree.root_id = root_id
    tree._sequence = len(tree.nodes)
    return tree


def dumps_game(state: GameState, tree: MoveTree, current_node_id: Optional[str] = None) -> str:
    return json.dumps(
        {
            "state": state_to_dict(state),
            "tree": tree_to_dict(tree),
            "currentNodeId": current_node_id or tree.root_id,
        }
    )


def loads_game(text: str) -> Tuple[GameState, MoveTree, str]:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise SerializationError(f"Saved game is not valid JSON: {e}") from e
    if not isinstance(payload, dict) or "state" not in payload or "tree" not in payload:
        raise SerializationError("Saved game must contain 'state' and 'tree'")

    state = state_from_dict(payload["state"])
    tree = tree_from_dict(payload["tree"])
    current = payload.get("currentNodeId") or tree.root_id
    if current not in tree:
        raise SerializationError(
            "Current node is not part of the tree", context={"node_id": current}
        )
    return state, tree, current
