from unittest import TestCase
import unittest
import numpy as np
import causalgrasp as cg


class TestPDAG(TestCase):
    def test_meek_r1(self):
        pdag = cg.PDAG(arcs={(1, 2)}, edges={(2, 3)})
        pdag.apply_meek_rules()
        self.assertEqual(pdag.arcs, {(1, 2), (2, 3)})
        self.assertEqual(pdag.edges, set())

    def test_meek_r2(self):
        pdag = cg.PDAG(arcs={(1, 2), (2, 3)}, edges={(1, 3)})
        pdag.apply_meek_rules()
        self.assertEqual(pdag.arcs, {(1, 2), (2, 3), (1, 3)})

    def test_meek_r3(self):
        pdag = cg.PDAG(arcs={(2, 4), (3, 4)}, edges={(1, 2), (1, 3), (1, 4)})
        pdag.apply_meek_rules()
        self.assertEqual(pdag.arcs, {(2, 4), (3, 4), (1, 4)})
        self.assertEqual(pdag.edges, {frozenset({1, 2}), frozenset({1, 3})})

    def test_meek_r4(self):
        pdag = cg.PDAG(arcs={(2, 3), (3, 4)}, edges={(1, 2), (1, 3), (1, 4)})
        pdag.apply_meek_rules()
        self.assertIn((1, 4), pdag.arcs)
        self.assertEqual(pdag.edges, {frozenset({1, 2}), frozenset({1, 3})})

    def test_meek_no_change(self):
        pdag = cg.PDAG(edges={(1, 2), (2, 3)})
        pdag.apply_meek_rules()
        self.assertEqual(pdag.arcs, set())
        self.assertEqual(pdag.num_edges, 2)

    def test_orient_required(self):
        pdag = cg.PDAG(edges={(1, 2)})
        pdag.orient_with_knowledge(cg.Knowledge(required={(2, 1)}))
        self.assertEqual(pdag.arcs, {(2, 1)})
        self.assertEqual(pdag.edges, set())

    def test_orient_forbidden(self):
        pdag = cg.PDAG(edges={(1, 2)})
        pdag.orient_with_knowledge(cg.Knowledge(forbidden={(1, 2)}))
        self.assertEqual(pdag.arcs, {(2, 1)})

    def test_orient_forbidden_arc(self):
        pdag = cg.PDAG(arcs={(1, 2)})
        pdag.orient_with_knowledge(cg.Knowledge(forbidden={(1, 2)}))
        self.assertEqual(pdag.arcs, {(2, 1)})
        self.assertEqual(pdag.parents_of(1), {2})
        self.assertEqual(pdag.children_of(1), set())

    def test_orient_with_knowledge_propagates(self):
        pdag = cg.PDAG(edges={(1, 2), (2, 3)})
        pdag.orient_with_knowledge(cg.Knowledge(tiers=[{1}, {2}]))
        self.assertEqual(pdag.arcs, {(1, 2), (2, 3)})

    def test_orient_mutually_forbidden(self):
        pdag = cg.PDAG(edges={(1, 2)})
        pdag.orient_with_knowledge(cg.Knowledge(forbidden={(1, 2), (2, 1)}))
        self.assertEqual(pdag.edges, {frozenset({1, 2})})

    def test_to_dag(self):
        d = cg.DAG(arcs={(1, 2), (1, 3), (3, 4), (2, 4), (3, 5)})
        cpdag = d.cpdag()
        d2 = cpdag.to_dag()
        self.assertEqual(d2.nodes, d.nodes)
        self.assertEqual(d.cpdag(), d2.cpdag())

    def test_to_dag_isolated_nodes(self):
        pdag = cg.PDAG(nodes={1, 2, 3}, edges={(1, 2)})
        d = pdag.to_dag()
        self.assertEqual(d.nodes, {1, 2, 3})
        self.assertEqual(d.num_arcs, 1)

    def test_from_amat(self):
        amat = np.array([
            [0, 1, 0],
            [1, 0, 1],
            [0, 0, 0]
        ])
        pdag = cg.PDAG.from_amat(amat)
        self.assertEqual(pdag.arcs, {(1, 2)})
        self.assertEqual(pdag.edges, {frozenset({0, 1})})
        pdag_amat, node_list = pdag.to_amat()
        self.assertEqual(node_list, [0, 1, 2])
        self.assertEqual(pdag_amat[0, 1], 1)
        self.assertEqual(pdag_amat[1, 0], 1)
        self.assertEqual(pdag_amat[2, 1], 0)

    def test_shd(self):
        pdag1 = cg.PDAG(arcs={(1, 2)}, edges={(2, 3)})
        pdag2 = cg.PDAG(arcs={(2, 1)}, edges={(2, 3), (1, 3)})
        self.assertEqual(pdag1.shd(pdag2), 2)
        self.assertEqual(pdag1.shd_skeleton(pdag2), 1)

    def test_copy_and_eq(self):
        pdag = cg.PDAG(arcs={(1, 2)}, edges={(2, 3)})
        pdag.attributes['score'] = -3.
        pdag2 = pdag.copy()
        self.assertEqual(pdag, pdag2)
        self.assertEqual(pdag2.attributes['score'], -3.)
        pdag2.remove_node(3)
        self.assertNotEqual(pdag, pdag2)
        self.assertEqual(pdag.undirected_neighbors_of(2), {3})


if __name__ == '__main__':
    unittest.main()
