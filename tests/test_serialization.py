import json

import pytest

from zertz.errors import SerializationError
from zertz.game_engine import GameEngine
from zertz.models import GamePhase, MarbleColor, Move, PlayerId
from zertz.move_tree import ROOT_ID, MoveTree
from zertz.serialization import (
    dumps_game,
    loads_game,
    state_from_dict,
    state_to_dict,
    tree_from_dict,
    tree_to_dict,
)


@pytest.fixture
def branching_tree():
    """Main line of three moves plus a variation at the second move."""
    tree = MoveTree()
    a = tree.append_move(ROOT_ID, Move.for_placement(MarbleColor.WHITE, "0,3", "0,0"), PlayerId.PLAYER1, 1, "Wd4 -d7")
    b = tree.append_move(a.id, Move.for_placement(MarbleColor.GRAY, "1,3", "3,0"), PlayerId.PLAYER2, 2)
    tree.append_move(b.id, Move.for_placement(MarbleColor.BLACK, "0,5", "-3,6"), PlayerId.PLAYER1, 3)
    tree.append_move(a.id, Move.for_placement(MarbleColor.BLACK, "-1,3", "3,0"), PlayerId.PLAYER2, 2)
    return tree


def test_state_wire_shape(fresh_state):
    payload = state_to_dict(fresh_state)

    assert isinstance(payload["rings"], list)
    ring_id, ring = payload["rings"][0]
    assert ring_id == ring["id"]
    assert "isRemoved" in ring
    assert payload["currentPlayer"] == "player1"
    assert payload["moveNumber"] == 1
    assert payload["pendingPlacement"] is None
    assert payload["boardSize"] == 37
    json.dumps(payload)


def test_state_round_trip_mid_turn(fresh_state):
    GameEngine.place_marble(fresh_state, "0,3", MarbleColor.GRAY)
    restored = state_from_dict(json.loads(json.dumps(state_to_dict(fresh_state))))

    assert restored.model_dump() == fresh_state.model_dump()
    assert restored.phase == GamePhase.RING_REMOVAL
    assert restored.pending_placement.marble_color == MarbleColor.GRAY
    assert list(restored.rings) == list(fresh_state.rings)


def test_state_from_mapping_rings(fresh_state):
    payload = fresh_state.model_dump(by_alias=True, mode="json")
    assert state_from_dict(payload).model_dump() == fresh_state.model_dump()


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"rings": [["0,0"]], "reserve": {"white": 1, "gray": 1, "black": 1}},
        {"rings": [], "reserve": {"white": -1, "gray": 0, "black": 0}},
        {"rings": [], "reserve": {"white": 0, "gray": 0, "black": 0}, "phase": "bogus"},
    ],
)
def test_malformed_state_raises(payload):
    with pytest.raises(SerializationError):
        state_from_dict(payload)


def test_tree_round_trip_restores_parents(branching_tree):
    payload = json.loads(json.dumps(tree_to_dict(branching_tree)))
    restored = tree_from_dict(payload)

    assert set(restored.nodes) == set(branching_tree.nodes)
    for node_id, node in branching_tree.nodes.items():
        copy = restored.get_node(node_id)
        assert copy.parent_id == node.parent_id
        assert copy.children == node.children
        if node.move is None:
            assert copy.move is None
        else:
            assert copy.move.model_dump() == node.move.model_dump()
        assert copy.is_main_line == node.is_main_line


def test_tree_payload_has_no_parent_links(branching_tree):
    payload = tree_to_dict(branching_tree)

    def parents(node):
        yield node["parent"]
        for child in node["children"]:
            yield from parents(child)

    assert set(parents(payload)) == {None}


def test_restored_tree_accepts_new_moves(branching_tree):
    restored = tree_from_dict(tree_to_dict(branching_tree))
    leaf = restored.main_line()[-1]
    node = restored.append_move(leaf.id, Move.for_placement(MarbleColor.WHITE, "-3,3", "2,0"), PlayerId.PLAYER2, 4)
    assert node.id not in branching_tree.nodes
    assert len(restored) == len(branching_tree) + 1


def test_tree_with_duplicate_ids_raises():
    payload = {
        "id": "root", "moveNumber": 0, "player": "player1", "move": None,
        "children": [
            {"id": "1-1", "moveNumber": 1, "player": "player1", "move": None, "children": []},
            {"id": "1-1", "moveNumber": 1, "player": "player1", "move": None, "children": []},
        ],
    }
    with pytest.raises(SerializationError):
        tree_from_dict(payload)


def test_tree_missing_id_raises():
    with pytest.raises(SerializationError):
        tree_from_dict({"children": []})


def test_client_shaped_tree_loads():
    payload = {
        "id": "root",
        "moveNumber": 0,
        "player": "player1",
        "move": None,
        "notation": "",
        "parent": None,
        "isMainLine": True,
        "children": [
            {
                "id": "1-1700000000000",
                "moveNumber": 1,
                "player": "player1",
                "move": {
                    "type": "capture",
                    "data": {
                        "from": "-3,3",
                        "to": "-1,3",
                        "captured": "-2,3",
                        "chain": [{"from": "-1,3", "to": "1,3", "captured": "0,3"}],
                    },
                },
                "notation": "Wa4-c4-e4",
                "parent": None,
                "isMainLine": True,
                "children": [],
            }
        ],
    }
    tree = tree_from_dict(payload)
    node = tree.get_node("1-1700000000000")
    assert node.parent_id == "root"
    assert [step.to for step in node.move.capture_steps()] == ["-1,3", "1,3"]


def test_game_round_trip(fresh_state, branching_tree):
    text = dumps_game(fresh_state, branching_tree, branching_tree.main_line()[-1].id)
    state, tree, current = loads_game(text)

    assert state.model_dump() == fresh_state.model_dump()
    assert current == branching_tree.main_line()[-1].id
    assert set(tree.nodes) == set(branching_tree.nodes)


@pytest.mark.parametrize(
    "text",
    [
        "not json",
        "[]",
        json.dumps({"state": {}}),
    ],
)
def test_loads_game_rejects_bad_payloads(text):
    with pytest.raises(SerializationError):
        loads_game(text)


def test_loads_game_rejects_unknown_current_node(fresh_state):
    text = dumps_game(fresh_state, MoveTree())
    payload = json.loads(text)
    payload["currentNodeId"] = "7-7"
    with pytest.raises(SerializationError):
        loads_game(json.dumps(payload))
