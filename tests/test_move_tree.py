import unittest

from zertz.errors import InvalidStateError
from zertz.models import MarbleColor, Move, PlayerId
from zertz.move_tree import ROOT_ID, MoveTree


def _placement(ring_id, removed=None):
    return Move.for_placement(MarbleColor.WHITE, ring_id, removed)


class TestMoveTree(unittest.TestCase):
    def setUp(self):
        self.tree = MoveTree()
        self.first = self.tree.append_move(ROOT_ID, _placement("0,3", "0,0"), PlayerId.PLAYER1, 1, "Wd4 -d7")
        self.second = self.tree.append_move(self.first.id, _placement("1,3", "3,0"), PlayerId.PLAYER2, 2)

    def test_root(self):
        root = MoveTree().root
        self.assertEqual(root.id, ROOT_ID)
        self.assertEqual(root.move_number, 0)
        self.assertIsNone(root.move)
        self.assertIsNone(root.parent_id)
        self.assertEqual(root.children, [])

    def test_append_links_parent_and_child(self):
        self.assertEqual(self.first.parent_id, ROOT_ID)
        self.assertEqual(self.tree.root.children, [self.first.id])
        self.assertEqual(self.tree.parent(self.second.id).id, self.first.id)
        self.assertTrue(self.first.is_main_line)
        self.assertEqual(self.first.notation, "Wd4 -d7")

    def test_node_ids_are_unique(self):
        ids = [node.id for node in self.tree.walk()]
        self.assertEqual(len(ids), len(set(ids)))
        self.assertEqual(len(self.tree), 3)
        self.assertIn(self.second.id, self.tree)

    def test_second_child_is_a_variation(self):
        alternative = self.tree.append_move(ROOT_ID, _placement("-1,3", "0,0"), PlayerId.PLAYER1, 1)

        self.assertFalse(alternative.is_main_line)
        self.assertEqual(self.tree.root.children, [self.first.id, alternative.id])
        self.assertEqual([n.id for n in self.tree.variations(ROOT_ID)], [alternative.id])
        self.assertEqual(
            [n.id for n in self.tree.main_line()],
            [self.first.id, self.second.id],
        )

    def test_path_from_root_excludes_root(self):
        path = self.tree.path_from_root(self.second.id)
        self.assertEqual([n.id for n in path], [self.first.id, self.second.id])
        self.assertEqual(self.tree.path_from_root(ROOT_ID), [])

    def test_detach_removes_subtree(self):
        parent = self.tree.detach(self.first.id)

        self.assertEqual(parent.id, ROOT_ID)
        self.assertEqual(self.tree.root.children, [])
        self.assertNotIn(self.first.id, self.tree)
        self.assertNotIn(self.second.id, self.tree)
        self.assertEqual(len(self.tree), 1)

    def test_detach_keeps_sibling_order(self):
        b = self.tree.append_move(ROOT_ID, _placement("-1,3"), PlayerId.PLAYER1, 1)
        c = self.tree.append_move(ROOT_ID, _placement("-2,3"), PlayerId.PLAYER1, 1)
        self.tree.detach(b.id)
        self.assertEqual(self.tree.root.children, [self.first.id, c.id])

    def test_detach_root_raises(self):
        with self.assertRaises(InvalidStateError):
            self.tree.detach(ROOT_ID)

    def test_unknown_node_raises(self):
        with self.assertRaises(InvalidStateError):
            self.tree.get_node("99-99")
        with self.assertRaises(InvalidStateError):
            self.tree.append_move("99-99", _placement("0,3"), PlayerId.PLAYER1, 1)

    def test_walk_is_preorder(self):
        alternative = self.tree.append_move(ROOT_ID, _placement("-1,3"), PlayerId.PLAYER1, 1)
        order = [node.id for node in self.tree.walk()]
        self.assertEqual(order, [ROOT_ID, self.first.id, self.second.id, alternative.id])


if __name__ == "__main__":
    unittest.main()
