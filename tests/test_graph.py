# -*- coding: ascii -*-
"""Test scaffold tree and network structure."""

import unittest

import numpy as np
from rdkit import Chem

from scaffoldgen.config import ScaffoldSettings
from scaffoldgen.decompose import decompose_canonical, decompose_enumerative, make_fragment
from scaffoldgen.exceptions import NodeNotFoundError
from scaffoldgen.graph import ParentPolicy, ScaffoldGraph, ScaffoldNetwork, ScaffoldTree
from tests import CleanLogsTestCase, canon

DIPHENYLMETHANE = "c1ccc(Cc2ccccc2)cc1"
BIPHENYL = "c1ccc(-c2ccccc2)cc1"
BENZYLNAPHTHALENE = "c1ccc(Cc2ccc3ccccc3c2)cc1"


def path_of(smiles, name=None):
    return decompose_canonical(Chem.MolFromSmiles(smiles), origin=name or smiles)


def two_path_tree():
    tree = ScaffoldTree()
    tree.add_path(path_of(DIPHENYLMETHANE, "dpm"))
    tree.add_path(path_of(BIPHENYL, "biphenyl"))
    return tree


def matrix_edges(matrix, nodes):
    edges = set()
    for i, j in zip(*np.nonzero(matrix)):
        edges.add(frozenset((nodes[i].identity, nodes[j].identity)))
    return edges


class TestScaffoldTree(CleanLogsTestCase):

    def test_paths_merge_on_shared_root(self):
        tree = two_path_tree()
        self.assertEqual(len(tree), 3)
        benzene = tree.lookup_by_molecule(Chem.MolFromSmiles("C1=CC=CC=C1"))
        self.assertIsNotNone(benzene)
        self.assertEqual(benzene.level, 0)
        self.assertEqual(sorted(benzene.origins), ["biphenyl", "dpm"])
        self.assertEqual(len(tree.get_children(benzene)), 2)
        self.assertIs(tree.get_root(), benzene)

    def test_lookup_unknown(self):
        tree = two_path_tree()
        self.assertIsNone(tree.lookup_by_molecule(Chem.MolFromSmiles("c1ccncc1")))
        self.assertNotIn(canon("c1ccncc1"), tree)
        self.assertIn(Chem.MolFromSmiles(BIPHENYL), tree)

    def test_add_path_returns_nodes_in_path_order(self):
        tree = ScaffoldTree()
        path = path_of(BENZYLNAPHTHALENE)
        nodes = tree.add_path(path)
        self.assertEqual([n.smiles for n in nodes], path.smiles())
        self.assertEqual([n.level for n in nodes], [2, 1, 0])

    def test_levels(self):
        tree = two_path_tree()
        self.assertEqual(tree.max_level(), 1)
        self.assertEqual([n.smiles for n in tree.nodes_at_level(0)], [canon("c1ccccc1")])
        self.assertEqual(len(tree.nodes_at_level(1)), 2)
        self.assertEqual(tree.nodes_at_level(5), [])
        with self.assertRaises(ValueError):
            tree.nodes_at_level(-1)

    def test_adjacency_matrix(self):
        tree = two_path_tree()
        matrix, nodes = tree.to_adjacency_matrix()
        self.assertEqual(matrix.shape, (3, 3))
        self.assertEqual(matrix.dtype, np.int8)
        self.assertTrue((matrix == matrix.T).all())
        self.assertEqual(int(matrix.sum()), 2 * len(tree.edges()))
        self.assertEqual(matrix_edges(matrix, nodes),
                         {frozenset(e) for e in tree.edges()})

    def test_single_parent_policy(self):
        """A tree keeps the first parent it saw for a node."""
        settings = ScaffoldSettings()
        tree = ScaffoldTree(settings)
        p1 = tree.add_fragment(make_fragment(Chem.MolFromSmiles("c1ccccc1"), 0, settings))
        p2 = tree.add_fragment(make_fragment(Chem.MolFromSmiles("c1ccncc1"), 0, settings))
        child = make_fragment(Chem.MolFromSmiles("c1ccc(-c2ccncc2)cc1"), 0, settings)
        node = tree.add_fragment(child, [p1])
        again = tree.add_fragment(child, [p2])
        self.assertIs(node, again)
        self.assertEqual(tree.get_parents(node), [p1])
        self.assertEqual(tree.get_children(p2), [])

    def test_remove_leaf(self):
        tree = two_path_tree()
        tree.remove_node(canon(DIPHENYLMETHANE))
        self.assertEqual(len(tree), 2)
        self.assertTrue(tree.is_connected())
        self.assertTrue(tree.has_single_root())
        self.assertEqual(len(tree.get_children(tree.get_root())), 1)

    def test_remove_root_orphans_children(self):
        tree = two_path_tree()
        tree.remove_node(tree.get_root())
        self.assertEqual(len(tree), 2)
        self.assertFalse(tree.has_single_root())
        self.assertFalse(tree.is_connected())
        self.assertIsNone(tree.get_root())
        matrix, _ = tree.to_adjacency_matrix()
        self.assertEqual(int(matrix.sum()), 0)

    def test_reinsert_after_root_removal(self):
        """Re-adding a path gives the orphaned node the new root as parent."""
        tree = ScaffoldTree()
        path = path_of("c1ccc(cc1)Cc1ccccn1")
        tree.add_path(path)
        removed = tree.remove_node(tree.get_root())
        tree.add_path(path)
        self.assertEqual(len(tree), 2)
        self.assertTrue(tree.has_single_root())
        self.assertTrue(tree.is_connected())
        root = tree.get_root()
        self.assertEqual(root.smiles, removed.smiles)
        self.assertNotEqual(root.index, removed.index)
        child = tree.get_node(path[0].identity)
        self.assertEqual(child.parents, [root.index])
        self.assertEqual(child.level, 1)

    def test_remove_missing_node(self):
        tree = two_path_tree()
        node = tree.remove_node(canon(BIPHENYL))
        with self.assertRaises(NodeNotFoundError):
            tree.remove_node(node)
        with self.assertRaises(KeyError):
            tree.remove_node(canon("c1ccncc1"))
        with self.assertRaises(NodeNotFoundError):
            tree.get_parents(node)

    def test_merge_tree(self):
        tree = ScaffoldTree()
        tree.add_path(path_of(DIPHENYLMETHANE, "dpm"))
        other = ScaffoldTree()
        other.add_path(path_of(BIPHENYL, "biphenyl"))
        self.assertTrue(tree.merge_tree(other))
        self.assertEqual(len(tree), 3)
        self.assertTrue(tree.is_connected())
        self.assertEqual(sorted(tree.get_root().origins), ["biphenyl", "dpm"])

        foreign = ScaffoldTree()
        foreign.add_path(path_of("C1CCCCC1C"))
        self.assertFalse(tree.merge_tree(foreign))
        self.assertEqual(len(tree), 3)

    def test_empty_tree(self):
        tree = ScaffoldTree()
        self.assertEqual(len(tree), 0)
        self.assertTrue(tree.is_connected())
        self.assertFalse(tree.has_single_root())
        self.assertEqual(tree.max_level(), -1)
        self.assertIsNone(tree.get_root())
        matrix, nodes = tree.to_adjacency_matrix()
        self.assertEqual(matrix.shape, (0, 0))
        self.assertEqual(nodes, [])


class TestScaffoldNetwork(CleanLogsTestCase):

    def _network(self):
        network = ScaffoldNetwork()
        network.add_dag(decompose_enumerative(Chem.MolFromSmiles(BENZYLNAPHTHALENE), origin="bn"))
        return network

    def test_add_dag(self):
        network = self._network()
        self.assertEqual(len(network), 4)
        top = network.get_node(canon(BENZYLNAPHTHALENE))
        self.assertEqual(top.level, 2)
        self.assertEqual(sorted(p.smiles for p in network.get_parents(top)),
                         sorted([canon("c1ccc2ccccc2c1"), canon(DIPHENYLMETHANE)]))
        self.assertEqual([n.smiles for n in network.roots()], [canon("c1ccccc1")])
        self.assertEqual(network.max_level(), 2)
        self.assertTrue(network.is_connected())
        self.assertTrue(network.has_single_root())
        self.assertTrue(all(n.origins == ["bn"] for n in network))

    def test_adjacency_matrix(self):
        matrix, nodes = self._network().to_adjacency_matrix()
        self.assertEqual(matrix.shape, (4, 4))
        self.assertEqual(int(matrix.sum()), 8)
        self.assertTrue((matrix == matrix.T).all())
        self.assertEqual(int(np.trace(matrix)), 0)

    def test_multi_parent_policy(self):
        network = ScaffoldNetwork()
        self.assertIs(network.policy, ParentPolicy.MULTI)
        settings = network.settings
        p1 = network.add_fragment(make_fragment(Chem.MolFromSmiles("c1ccccc1"), 0, settings))
        p2 = network.add_fragment(make_fragment(Chem.MolFromSmiles("c1ccncc1"), 0, settings))
        child = make_fragment(Chem.MolFromSmiles("c1ccc(-c2ccncc2)cc1"), 0, settings)
        node = network.add_fragment(child, [p1])
        network.add_fragment(child, [p2])
        self.assertEqual(network.get_parents(node), [p1, p2])
        self.assertEqual(node.level, 1)

    def test_remove_one_of_two_parents(self):
        """A node with another live parent stays reachable."""
        network = self._network()
        network.remove_node(canon("c1ccc2ccccc2c1"))
        self.assertEqual(len(network), 3)
        self.assertTrue(network.is_connected())
        self.assertTrue(network.has_single_root())

    def test_reinsert_after_root_removal(self):
        network = self._network()
        network.remove_node(canon("c1ccccc1"))
        network.add_dag(decompose_enumerative(Chem.MolFromSmiles(BENZYLNAPHTHALENE), origin="bn"))
        self.assertEqual(len(network), 4)
        self.assertTrue(network.has_single_root())
        self.assertTrue(network.is_connected())
        for node in network.all_nodes():
            self.assertEqual(len(network.get_parents(node)), len(node.parents))

    def test_merge_network(self):
        network = self._network()
        other = ScaffoldNetwork()
        other.add_dag(decompose_enumerative(Chem.MolFromSmiles(DIPHENYLMETHANE), origin="dpm"))
        other.add_dag(decompose_enumerative(Chem.MolFromSmiles(BIPHENYL), origin="biphenyl"))
        network.merge_network(other)
        self.assertEqual(len(network), 5)
        self.assertEqual(network.get_node(canon(DIPHENYLMETHANE)).origins, ["bn", "dpm"])
        self.assertEqual(network.get_node(canon("c1ccccc1")).origin_count, 3)
        self.assertTrue(network.is_connected())

    def test_graph_policy_value(self):
        graph = ScaffoldGraph('single')
        self.assertIs(graph.policy, ParentPolicy.SINGLE)


if __name__ == '__main__':
    unittest.main()
