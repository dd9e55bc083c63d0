"""
Strategies for choosing the parents of a node among the nodes that precede it in an order.
"""

from collections import namedtuple
from typing import Sequence, Optional
import math
from causalgrasp.classes.knowledge import Knowledge
from causalgrasp.classes.custom_types import Node
from causalgrasp.utils.scores.score import Score
from causalgrasp.utils.ci_tests.ci_tester import CI_Tester

PositionScore = namedtuple('PositionScore', ['parents', 'score'])


class ParentSelector:
    """
    Picks a parent set for ``node`` out of ``prefix``, the nodes before it in the order, and rates it.
    """
    def select(self, node: Node, prefix: Sequence[Node]) -> PositionScore:
        raise NotImplementedError


class GrowShrinkSelector(ParentSelector):
    def __init__(self, score: Score, knowledge: Optional[Knowledge]=None, max_indegree=-1, backward=False):
        """
        Greedy parent search: grow the parent set by the single best addition while the score strictly improves,
        then shrink it by the single best removal while the score strictly improves.

        Parameters
        ----------
        score:
            the local score, higher is better.
        knowledge:
            parents ``z`` with ``knowledge.is_forbidden(z, node)`` are never added.
        max_indegree:
            the largest number of parents that may be added; unbounded if <= 0.
        backward:
            if True, skip the grow phase and shrink starting from the whole prefix.

        Candidates are scanned in the order of the prefix, and the first one reaching the best value is kept, so
        that the result only depends on the prefix. Candidates scored NaN are never selected.
        """
        self.score = score
        self.knowledge = knowledge if knowledge is not None else Knowledge()
        self.max_indegree = max_indegree
        self.backward = backward

    def _local_score(self, node, parents):
        variables_hash = self.score.variables_hash
        return self.score.local_score(variables_hash[node], [variables_hash[p] for p in parents])

    def grow_shrink(self, node: Node, prefix: Sequence[Node]):
        """
        Return the parents chosen for ``node`` among ``prefix``, in the order they were added, and their score.
        """
        parents = list(prefix) if self.backward else []
        s_max = self._local_score(node, parents)

        # === GROW
        if not self.backward:
            while self.max_indegree <= 0 or len(parents) < self.max_indegree:
                best = None
                for z in prefix:
                    if z in parents or self.knowledge.is_forbidden(z, node):
                        continue
                    s = self._local_score(node, parents + [z])
                    if s > s_max:
                        s_max = s
                        best = z
                if best is None:
                    break
                parents.append(best)

        # === SHRINK
        while parents:
            best = None
            for z in parents:
                s = self._local_score(node, [p for p in parents if p != z])
                if s > s_max:
                    s_max = s
                    best = z
            if best is None:
                break
            parents.remove(best)

        if math.isnan(s_max):
            s_max = -math.inf
        return parents, s_max

    def select(self, node, prefix):
        parents, s = self.grow_shrink(node, prefix)
        return PositionScore(frozenset(parents), s)


class SparseGrowShrinkSelector(GrowShrinkSelector):
    """
    Same parent search as ``GrowShrinkSelector``, rated by the number of parents only: the score of a position is
    ``-len(parents)``.
    """
    def select(self, node, prefix):
        parents, _ = self.grow_shrink(node, prefix)
        return PositionScore(frozenset(parents), -len(parents))


class MinimalImapSelector(ParentSelector):
    def __init__(self, ci_tester: CI_Tester, knowledge: Optional[Knowledge]=None):
        """
        Parents of the minimal I-map of an order: ``z`` is a parent of ``node`` unless ``node`` is independent of ``z``
        given the rest of the prefix. The score of a position is ``-len(parents)``.

        See Raskutti, G., & Uhler, C. (2018). Learning directed acyclic graph models based on sparsest permutations.
        """
        self.ci_tester = ci_tester
        self.knowledge = knowledge if knowledge is not None else Knowledge()

    def select(self, node, prefix):
        prefix_set = set(prefix)
        parents = frozenset(
            z for z in prefix
            if not self.knowledge.is_forbidden(z, node) and not self.ci_tester.is_ci(z, node, prefix_set - {z})
        )
        return PositionScore(parents, -len(parents))
