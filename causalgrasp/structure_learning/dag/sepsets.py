from typing import Optional, List, Dict, FrozenSet, Union
import itertools as itr
import random
from causalgrasp.classes.dag import DAG
from causalgrasp.classes.pdag import PDAG
from causalgrasp.classes.knowledge import Knowledge
from causalgrasp.classes.custom_types import Node
from causalgrasp.utils.scores.score import Score
from causalgrasp.structure_learning.dag.grasp import Grasp


class SepsetsTeyssier:
    def __init__(
            self,
            graph: Union[DAG, PDAG],
            score: Score,
            knowledge: Optional[Knowledge]=None,
            extra_sepsets: Optional[Dict[FrozenSet[Node], List[Node]]]=None,
            sepsets_depth: int=-1,
            seed: Optional[int]=None
    ):
        """
        Separating sets found by order search: ``a`` and ``b`` are independent given ``c`` when the best order of
        ``c + [a, b]`` leaves ``a`` and ``b`` non-adjacent.

        Parameters
        ----------
        graph:
            graph whose adjacencies are searched for separating sets.
        score:
            local score used by the search.
        knowledge:
            background knowledge used by the search.
        extra_sepsets:
            separating sets known in advance, keyed by ``frozenset({i, k})``.
        sepsets_depth:
            largest size of separating set tried; unbounded if -1.
        seed:
            seed of the random number generator used by the search.
        """
        self.graph = graph
        self.score = score
        self.knowledge = knowledge if knowledge is not None else Knowledge()
        self.extra_sepsets = extra_sepsets if extra_sepsets is not None else dict()
        self.sepsets_depth = sepsets_depth
        self.rng = random.Random(seed)

    def _check_node(self, node):
        if node is None or node not in self.graph.nodes:
            raise ValueError("%s is not a node of the graph" % (node,))

    def get_sepset(self, i: Node, k: Node) -> Optional[List[Node]]:
        """
        Return the first subset of the neighbors of ``i``, then of ``k``, by increasing size, which separates ``i``
        and ``k``, or None if there is none.
        """
        self._check_node(i)
        self._check_node(k)
        known = self.extra_sepsets.get(frozenset({i, k}))
        if known is not None:
            return list(known)

        adj_i = sorted(self.graph.neighbors_of(i) - {k}, key=str)
        adj_k = sorted(self.graph.neighbors_of(k) - {i}, key=str)
        max_size = max(len(adj_i), len(adj_k))
        if self.sepsets_depth != -1:
            max_size = min(max_size, self.sepsets_depth)

        for d in range(max_size + 1):
            for adj in (adj_i, adj_k):
                if d > len(adj):
                    continue
                for subset in itr.combinations(adj, d):
                    if self.is_independent(i, k, list(subset)):
                        return list(subset)
        return None

    def is_independent(self, a: Node, b: Node, c: List[Node]) -> bool:
        search = Grasp(score=self.score, knowledge=self.knowledge, rng=self.rng)
        search.best_order(list(c) + [a, b])
        return not search.scorer.adjacent(a, b)

    def is_unshielded_collider(self, i: Node, j: Node, k: Node) -> bool:
        sepset = self.get_sepset(i, k)
        return sepset is not None and j not in sepset

    def is_unshielded_noncollider(self, i: Node, j: Node, k: Node) -> bool:
        sepset = self.get_sepset(i, k)
        return sepset is not None and j in sepset
