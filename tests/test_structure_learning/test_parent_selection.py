from unittest import TestCase
import unittest
import math
import causalgrasp as cg
from causalgrasp.structure_learning.dag import GrowShrinkSelector, SparseGrowShrinkSelector, MinimalImapSelector, \
    PositionScore

NODES = ['X1', 'X2', 'X3', 'X4']
ARCS = {('X1', 'X2'), ('X2', 'X3'), ('X3', 'X4')}


def chain_score(nodes=NODES, arcs=ARCS):
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


class TestGrowShrink(TestCase):
    def test_true_parent(self):
        selector = GrowShrinkSelector(chain_score())
        self.assertEqual(selector.select('X4', ['X1', 'X2', 'X3']), PositionScore(frozenset({'X3'}), 2))
        self.assertEqual(selector.select('X1', []), PositionScore(frozenset(), 0))

    def test_reversed_parent(self):
        selector = GrowShrinkSelector(chain_score())
        self.assertEqual(selector.select('X2', ['X4', 'X3']), PositionScore(frozenset({'X3'}), 1))

    def test_deterministic(self):
        selector = GrowShrinkSelector(chain_score())
        prefix = ['X3', 'X1', 'X4']
        self.assertEqual(selector.select('X2', prefix), selector.select('X2', prefix))

    def test_knowledge(self):
        selector = GrowShrinkSelector(chain_score(), cg.Knowledge(forbidden={('X3', 'X4')}))
        self.assertEqual(selector.select('X4', ['X1', 'X2', 'X3']), PositionScore(frozenset(), 0))

    def test_max_indegree_and_tie_break(self):
        score = cg.FunctionScore(['a', 'b', 'c', 'd'], lambda i, parents: len(parents))
        selector = GrowShrinkSelector(score, max_indegree=2)
        self.assertEqual(selector.select('d', ['c', 'a', 'b']), PositionScore(frozenset({'c', 'a'}), 2))
        selector = GrowShrinkSelector(score, max_indegree=-1)
        self.assertEqual(selector.select('d', ['c', 'a', 'b']).score, 3)

    def test_shrink(self):
        table = {
            frozenset(): 0, frozenset({0}): 1, frozenset({1}): .5, frozenset({2}): .5,
            frozenset({0, 1}): 2, frozenset({0, 2}): 1.5, frozenset({1, 2}): 4, frozenset({0, 1, 2}): 3
        }
        score = cg.FunctionScore(['a', 'b', 'c', 't'], lambda i, parents: table[frozenset(parents)])
        selector = GrowShrinkSelector(score)
        parents, s = selector.grow_shrink('t', ['a', 'b', 'c'])
        self.assertEqual(parents, ['b', 'c'])
        self.assertEqual(s, 4)

    def test_nan_never_selected(self):
        score = cg.FunctionScore(['a', 'b', 'c'], lambda i, parents: math.nan if 1 in parents else len(parents))
        selector = GrowShrinkSelector(score)
        self.assertEqual(selector.select('c', ['a', 'b']), PositionScore(frozenset({'a'}), 1))

    def test_nan_reported_as_minus_infinity(self):
        score = cg.FunctionScore(['a', 'b'], lambda i, parents: math.nan)
        selector = GrowShrinkSelector(score)
        position_score = selector.select('b', ['a'])
        self.assertEqual(position_score.parents, frozenset())
        self.assertEqual(position_score.score, -math.inf)

    def test_backward(self):
        selector = GrowShrinkSelector(chain_score(), backward=True)
        self.assertEqual(selector.select('X4', ['X1', 'X2', 'X3']), PositionScore(frozenset({'X3'}), 2))
        self.assertEqual(selector.select('X1', ['X2', 'X3', 'X4']), PositionScore(frozenset({'X2'}), 1))


class TestSparseGrowShrink(TestCase):
    def test_sparsity_score(self):
        selector = SparseGrowShrinkSelector(chain_score())
        self.assertEqual(selector.select('X4', ['X1', 'X2', 'X3']), PositionScore(frozenset({'X3'}), -1))
        self.assertEqual(selector.select('X1', ['X3', 'X4']), PositionScore(frozenset(), 0))


class TestMinimalImap(TestCase):
    def test_dsep_oracle(self):
        d = cg.DAG(arcs={('X1', 'X2'), ('X2', 'X3'), ('X3', 'X4')})
        selector = MinimalImapSelector(cg.MemoizedCI_Tester(cg.dsep_test, d))
        self.assertEqual(selector.select('X4', ['X1', 'X2', 'X3']), PositionScore(frozenset({'X3'}), -1))
        self.assertEqual(selector.select('X1', ['X4', 'X3', 'X2']), PositionScore(frozenset({'X2'}), -1))

    def test_collider(self):
        d = cg.DAG(arcs={(0, 2), (1, 2)})
        selector = MinimalImapSelector(cg.MemoizedCI_Tester(cg.dsep_test, d))
        self.assertEqual(selector.select(1, [2, 0]).parents, frozenset({0, 2}))
        self.assertEqual(selector.select(2, [0, 1]).parents, frozenset({0, 1}))

    def test_knowledge(self):
        d = cg.DAG(arcs={(0, 1)})
        selector = MinimalImapSelector(cg.MemoizedCI_Tester(cg.dsep_test, d), cg.Knowledge(forbidden={(0, 1)}))
        self.assertEqual(selector.select(1, [0]), PositionScore(frozenset(), 0))


if __name__ == '__main__':
    unittest.main()
