from unittest import TestCase
import unittest
import random
import threading
import numpy as np
import causalgrasp as cg
from causalgrasp.structure_learning.dag import Grasp, grasp

NODES = ['X1', 'X2', 'X3', 'X4']
ARCS = {('X1', 'X2'), ('X2', 'X3'), ('X3', 'X4')}


def oracle_score(nodes, arcs):
    """
    Oracle score which rewards true parents, rewards reversed arcs less, and penalizes every other parent.
    """
    def local_score(i, parents):
        total = 0
        for p in parents:
            if (nodes[p], nodes[i]) in arcs:
                total += 2
            elif (nodes[i], nodes[p]) in arcs:
                total += 1
            else:
                total -= 1
        return total
    return cg.FunctionScore(nodes, local_score)


def population_covariance(weights):
    """
    Covariance of the linear SEM X = B^T X + e with unit noise variances, where B[i, j] is the weight of i->j.
    """
    p = weights.shape[0]
    A = np.linalg.inv(np.eye(p) - weights.T)
    return A @ A.T


class TestGrasp(TestCase):
    def assertRunningScoreConsistent(self, scorer):
        recomputed = sum(
            scorer.selector.select(v, scorer.get_prefix(p)).score
            for p, v in enumerate(scorer.get_pi())
        )
        self.assertAlmostEqual(scorer.score(), recomputed)

    def test_reversed_chain(self):
        for seed in range(5):
            search = Grasp(oracle_score(NODES, ARCS), seed=seed)
            order = search.best_order(['X4', 'X3', 'X2', 'X1'])
            self.assertEqual(order, ['X1', 'X2', 'X3', 'X4'])
            self.assertEqual(search.get_num_edges(), 3)
            self.assertEqual(search.scorer.score(), 6)
            self.assertRunningScoreConsistent(search.scorer)

            dag = search.get_graph(cpdag=False)
            self.assertEqual(dag.arcs, ARCS)
            self.assertEqual(dag.attributes['score'], 6)
            self.assertTrue(dag.is_topological(order))

    def test_reversed_chain_variants(self):
        for kwargs in [dict(ordered=True), dict(depth=-1), dict(uncovered_depth=-1, non_singular_depth=-1),
                       dict(depth=1, uncovered_depth=0, non_singular_depth=0), dict(num_starts=3)]:
            search = Grasp(oracle_score(NODES, ARCS), seed=0, **kwargs)
            order = search.best_order(['X4', 'X3', 'X2', 'X1'])
            self.assertEqual(order, ['X1', 'X2', 'X3', 'X4'])
            self.assertEqual(search.get_num_edges(), 3)

    def test_empty_graph(self):
        score = cg.FunctionScore(NODES, lambda i, parents: 0)
        search = Grasp(score, seed=0)
        order = search.best_order(['X3', 'X1', 'X4', 'X2'])
        self.assertEqual(order, ['X3', 'X1', 'X4', 'X2'])
        self.assertEqual(search.get_num_edges(), 0)
        self.assertEqual(search.scorer.score(), 0)
        cpdag = search.get_graph()
        self.assertEqual(cpdag.num_adjacencies, 0)
        self.assertEqual(cpdag.nodes, set(NODES))

    def test_two_variables_with_knowledge(self):
        knowledge = cg.Knowledge(required={('X2', 'X1')})
        score = oracle_score(['X1', 'X2'], {('X1', 'X2')})
        for seed in range(3):
            search = Grasp(score, knowledge=knowledge, seed=seed)
            order = search.best_order(['X1', 'X2'])
            self.assertEqual(order, ['X2', 'X1'])
            dag = search.get_graph(cpdag=False)
            self.assertEqual(dag.arcs, {('X2', 'X1')})
            cpdag = search.get_graph()
            self.assertNotIn(('X1', 'X2'), cpdag.arcs)
            self.assertEqual(cpdag.arcs, {('X2', 'X1')})

    def test_tiers(self):
        knowledge = cg.Knowledge(tiers=[{'X4'}, {'X1', 'X2', 'X3'}])
        search = Grasp(oracle_score(NODES, ARCS), knowledge=knowledge, num_starts=2, seed=0)
        order = search.best_order(['X1', 'X2', 'X3', 'X4'])
        self.assertEqual(order[0], 'X4')
        self.assertFalse(knowledge.violates_knowledge(order))
        self.assertEqual(search.scorer.score(), 5)
        self.assertNotIn(('X3', 'X4'), search.get_graph(cpdag=False).arcs)

    def test_contradictory_knowledge(self):
        knowledge = cg.Knowledge(required={('X1', 'X2'), ('X2', 'X3'), ('X3', 'X1')})
        search = Grasp(oracle_score(NODES, ARCS), knowledge=knowledge)
        with self.assertRaises(cg.KnowledgeError):
            search.best_order(NODES)

    def test_required_arc_against_tiers(self):
        with self.assertRaises(cg.KnowledgeError):
            Grasp(oracle_score(NODES, ARCS), knowledge=cg.Knowledge(required={('X2', 'X1')}, tiers=[{'X1'}, {'X2'}]))

    def test_tiers_with_mutually_forbidden_pair(self):
        knowledge = cg.Knowledge(forbidden={('X1', 'X2')}, tiers=[{'X1'}, {'X2', 'X3', 'X4'}])
        search = Grasp(oracle_score(NODES, ARCS), knowledge=knowledge, seed=0)
        order = search.best_order(list(reversed(NODES)))
        self.assertEqual(order[0], 'X1')
        self.assertFalse(knowledge.violates_knowledge(order))
        self.assertFalse(search.get_graph(cpdag=False).has_arc('X1', 'X2'))

    def test_degenerate(self):
        search = Grasp(oracle_score(NODES, ARCS))
        self.assertEqual(search.best_order([]), [])
        self.assertEqual(search.get_num_edges(), 0)
        self.assertEqual(search.best_order(['X2']), ['X2'])
        self.assertEqual(search.get_graph(cpdag=False).nodes, {'X2'})

    def test_stop_event(self):
        stop_event = threading.Event()
        stop_event.set()
        search = Grasp(oracle_score(NODES, ARCS), stop_event=stop_event)
        order = search.best_order(['X4', 'X3', 'X2', 'X1'])
        self.assertEqual(order, ['X4', 'X3', 'X2', 'X1'])
        self.assertEqual(search.scorer.score(), 3)

    def test_score_never_decreases(self):
        rng = random.Random(1729)
        nodes = list(range(6))
        arcs = {(0, 2), (1, 2), (2, 3), (3, 5), (1, 4), (4, 5)}
        score = oracle_score(nodes, arcs)
        for _ in range(5):
            order = list(nodes)
            rng.shuffle(order)
            initial_score = cg.TeyssierScorer(score).score(order)
            search = Grasp(score, rng=rng)
            best = search.best_order(order)
            self.assertGreaterEqual(search.scorer.score(), initial_score)
            self.assertRunningScoreConsistent(search.scorer)
            self.assertTrue(search.get_graph(cpdag=False).is_topological(best))

    def test_set_depth(self):
        search = Grasp(oracle_score(NODES, ARCS))
        with self.assertRaises(ValueError):
            search.set_depth(-2)
        search.set_depth(-1)
        self.assertEqual(search.depth, -1)

    def test_invalid_construction(self):
        with self.assertRaises(ValueError):
            Grasp()
        with self.assertRaises(ValueError):
            Grasp(oracle_score(NODES, ARCS), use_raskutti_uhler=True)

    def test_get_graph_before_search(self):
        search = Grasp(oracle_score(NODES, ARCS))
        with self.assertRaises(ValueError):
            search.get_graph()

    def test_dsep_oracle(self):
        d = cg.DAG(arcs={(0, 2), (1, 2)})
        ci_tester = cg.MemoizedCI_Tester(cg.dsep_test, d)
        search = Grasp(ci_tester=ci_tester, use_raskutti_uhler=True, seed=0)
        search.best_order([2, 0, 1])
        self.assertEqual(search.get_num_edges(), 2)
        self.assertEqual(search.get_graph(), d.cpdag())

    def test_gaussian_bic(self):
        weights = np.zeros((3, 3))
        weights[0, 2] = 1
        weights[1, 2] = 1
        suffstat = dict(S=population_covariance(weights), n=1000)
        true_dag = cg.DAG.from_amat(weights)
        score = cg.GaussianBicScore(suffstat)
        for seed in range(3):
            search = Grasp(score, seed=seed)
            order = search.best_order([2, 1, 0])
            self.assertEqual(order[-1], 2)
            self.assertEqual(search.get_num_edges(), 2)
            self.assertEqual(search.get_graph(), true_dag.cpdag())

    def test_functional_wrapper(self):
        est_cpdag, order = grasp(['X4', 'X3', 'X2', 'X1'], oracle_score(NODES, ARCS), seed=0)
        self.assertEqual(order, ['X1', 'X2', 'X3', 'X4'])
        self.assertEqual(est_cpdag.num_edges, 3)
        self.assertEqual(est_cpdag.attributes['score'], 6)
        est_dag, _ = grasp(['X4', 'X3', 'X2', 'X1'], oracle_score(NODES, ARCS), cpdag=False, verbose=True)
        self.assertEqual(est_dag.arcs, ARCS)


if __name__ == '__main__':
    unittest.main()
