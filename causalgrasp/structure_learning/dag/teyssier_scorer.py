"""
Scoring of variable orders, following Teyssier & Koller (2005): each node takes the parents chosen among the nodes that
precede it, and the score of the order is the sum of the scores of all positions.
"""

from typing import List, Optional, Set, Sequence, Dict, FrozenSet, Hashable
from causalgrasp.classes.dag import DAG
from causalgrasp.classes.knowledge import Knowledge
from causalgrasp.classes.custom_types import Node, DirectedEdge
from causalgrasp.utils.core_utils import diff_range
from causalgrasp.utils.scores.score import Score
from causalgrasp.utils.ci_tests.ci_tester import CI_Tester
from causalgrasp.structure_learning.dag.parent_selection import ParentSelector, PositionScore, GrowShrinkSelector, \
    SparseGrowShrinkSelector, MinimalImapSelector


class TeyssierScorer:
    DEFAULT_KEY = 'default'
    TUCK_KEY = 'tuck'

    def __init__(
            self,
            score: Optional[Score]=None,
            ci_tester: Optional[CI_Tester]=None,
            nodes: Optional[Sequence[Node]]=None,
            knowledge: Optional[Knowledge]=None,
            use_score=True,
            use_backward_scoring=False,
            max_indegree=-1,
            selector: Optional[ParentSelector]=None
    ):
        """
        Keeps an order ``pi`` of the nodes together with the parents chosen for each position and their score, and
        updates them incrementally as nodes are moved.

        Parameters
        ----------
        score:
            local score used to choose parents.
        ci_tester:
            conditional independence tester, used to choose parents when no score is given.
        nodes:
            the nodes that may be scored. Defaults to ``score.variables``.
        knowledge:
            background knowledge; forbidden parents are never chosen.
        use_score:
            if False, positions are rated by ``-len(parents)`` instead of by the score.
        use_backward_scoring:
            if True, parents are found by shrinking from the whole prefix.
        max_indegree:
            maximum number of parents chosen for a node; unbounded if <= 0.
        selector:
            a ParentSelector to use instead of the one given by the other options.

        Examples
        --------
        >>> import causalgrasp as cg
        >>> true_parents = {0: set(), 1: {0}}
        >>> score = cg.FunctionScore([0, 1], lambda i, pa: len(set(pa) & true_parents[i]) - len(set(pa) - true_parents[i]))
        >>> scorer = cg.TeyssierScorer(score)
        >>> scorer.score([0, 1])
        1
        >>> scorer.get_parents(1)
        {0}
        >>> scorer.score([1, 0])
        0
        """
        self.knowledge = knowledge if knowledge is not None else Knowledge()
        if selector is not None:
            self.selector = selector
        elif score is not None:
            selector_class = GrowShrinkSelector if use_score else SparseGrowShrinkSelector
            self.selector = selector_class(score, self.knowledge, max_indegree=max_indegree, backward=use_backward_scoring)
        elif ci_tester is not None:
            self.selector = MinimalImapSelector(ci_tester, self.knowledge)
        else:
            raise ValueError("One of score, ci_tester or selector must be given")

        if nodes is None:
            if score is None:
                raise ValueError("nodes must be given when there is no score")
            nodes = score.variables
        self.nodes = list(nodes)
        self._node_set = set(self.nodes)

        self.pi = []
        self.scores: List[PositionScore] = []
        self.order_hash = dict()
        self.running_score = 0
        self.bookmarked = dict()

    def __str__(self):
        return 'TeyssierScorer(pi=%s, score=%s)' % (self.pi, self.running_score)

    def __repr__(self):
        return str(self)

    def copy(self):
        """Return a copy of the scorer, sharing its parent selector and knowledge.
        """
        scorer = TeyssierScorer(nodes=self.nodes, knowledge=self.knowledge, selector=self.selector)
        scorer.pi = list(self.pi)
        scorer.scores = list(self.scores)
        scorer.order_hash = dict(self.order_hash)
        scorer.running_score = self.running_score
        scorer.bookmarked = {
            key: [list(pi), list(scores), dict(order_hash), running_score]
            for key, (pi, scores, order_hash, running_score) in self.bookmarked.items()
        }
        return scorer

    # === SCORING
    def score(self, order: Optional[Sequence[Node]]=None) -> float:
        """
        Return the score of the current order. If ``order`` is given, first replace the current order by it, clear all
        bookmarks, and choose the parents of every position.
        """
        if order is None:
            return self.running_score

        order = list(order)
        if len(set(order)) != len(order):
            raise ValueError("The order %s contains duplicates" % order)
        unknown = set(order) - self._node_set
        if unknown:
            raise ValueError("The nodes %s cannot be scored" % unknown)

        self.pi = order
        self.scores = [None] * len(order)
        self.order_hash = dict()
        self.running_score = 0
        self.clear_bookmarks()
        self.update_scores(0, len(order) - 1)
        return self.running_score

    def update_scores(self, i1: int, i2: int):
        """
        Choose the parents of each position from ``i1`` to ``i2`` inclusive again, adjusting the running score.
        """
        i1, i2 = max(i1, 0), min(i2, len(self.pi) - 1)
        for i in range(i1, i2 + 1):
            self.order_hash[self.pi[i]] = i
        for i in range(i1, i2 + 1):
            self._recalculate(i)

    def _recalculate(self, p: int):
        new_score = self.selector.select(self.pi[p], self.pi[:p])
        old_score = self.scores[p]
        if old_score is not None:
            self.running_score -= old_score.score
        self.running_score += new_score.score
        self.scores[p] = new_score

    # === MOVES
    def move_to(self, v: Node, to_index: int):
        v_index = self.index(v)
        if v_index == to_index:
            return
        self.pi.pop(v_index)
        self.pi.insert(to_index, v)
        self.update_scores(min(v_index, to_index), max(v_index, to_index))

    def move_to_no_update(self, v: Node, to_index: int):
        """
        Move ``v`` to position ``to_index`` without choosing parents again. Until ``update_scores`` is called on the
        affected range, the positions and scores of the moved nodes are stale.
        """
        self.pi.remove(v)
        self.pi.insert(to_index, v)

    def swap(self, m: Node, n: Node) -> bool:
        """
        Exchange the positions of ``m`` and ``n``. If the new order violates the knowledge, the swap is undone and
        False is returned.
        """
        i, j = self.index(m), self.index(n)
        self.pi[i], self.pi[j] = n, m
        if self.violates_knowledge(self.pi):
            self.pi[i], self.pi[j] = m, n
            return False
        self.update_scores(min(i, j), max(i, j))
        return True

    def tuck(self, k: Node, j: int, bookmark=True) -> bool:
        """
        Move ``k`` to position ``j``, together with its ancestors between ``j`` and ``k``, which keep their relative
        order and end up right before ``k``. Unless ``bookmark`` is False, the state before the tuck is bookmarked under
        ``TUCK_KEY``.

        Returns False, without changing anything, unless ``k`` is adjacent to the node at position ``j`` and comes
        after it. Knowledge is not checked.

        Examples
        --------
        >>> import causalgrasp as cg
        >>> true_parents = {0: set(), 1: {0}, 2: {1}}
        >>> score = cg.FunctionScore([0, 1, 2], lambda i, pa: len(set(pa) & true_parents[i]) - len(set(pa) - true_parents[i]))
        >>> scorer = cg.TeyssierScorer(score)
        >>> scorer.score([0, 1, 2])
        2
        >>> scorer.tuck(2, 1)
        True
        >>> scorer.get_pi()
        [0, 2, 1]
        """
        if not self.adjacent(k, self.get(j)):
            return False
        k_index = self.index(k)
        if j >= k_index:
            return False

        ancestors = self.get_ancestors(k)
        if bookmark:
            self.bookmark(self.TUCK_KEY)

        cursor = j
        for i in range(j + 1, k_index + 1):
            if self.pi[i] in ancestors:
                self.move_to_no_update(self.pi[i], cursor)
                cursor += 1

        self.update_scores(j, k_index)
        return True

    def remove(self, x: Node):
        """
        Remove ``x`` from the order, and clear all bookmarks.
        """
        ix = self.index(x)
        self.pi.pop(ix)
        self.running_score -= self.scores.pop(ix).score
        del self.order_hash[x]
        self.clear_bookmarks()
        self.update_scores(ix, len(self.pi) - 1)

    # === BOOKMARKS
    def bookmark(self, key: Hashable=DEFAULT_KEY):
        """
        Save the current state under ``key``. If ``key`` is already in use, only the positions which changed since
        are copied.
        """
        if key not in self.bookmarked:
            self.bookmarked[key] = [list(self.pi), list(self.scores), dict(self.order_hash), self.running_score]
            return

        saved = self.bookmarked[key]
        changed = self._changed_range(saved[0], saved[1])
        if changed is not None:
            first, last = changed
            saved[0][first:last + 1] = self.pi[first:last + 1]
            saved[1][first:last + 1] = self.scores[first:last + 1]
            for i in range(first, last + 1):
                saved[2][self.pi[i]] = i
        saved[3] = self.running_score

    def go_to_bookmark(self, key: Hashable=DEFAULT_KEY):
        """
        Restore the state saved under ``key``. Raises a KeyError if nothing was saved under ``key``.
        """
        if key not in self.bookmarked:
            raise KeyError("No bookmark %s" % (key,))

        pi, scores, _, running_score = self.bookmarked[key]
        changed = self._changed_range(pi, scores)
        if changed is not None:
            first, last = changed
            self.pi[first:last + 1] = pi[first:last + 1]
            self.scores[first:last + 1] = scores[first:last + 1]
            for i in range(first, last + 1):
                self.order_hash[self.pi[i]] = i
        self.running_score = running_score

    def clear_bookmarks(self):
        self.bookmarked.clear()

    def _changed_range(self, pi, scores):
        pi_range = diff_range(pi, self.pi)
        scores_range = diff_range(scores, self.scores)
        if pi_range is None:
            return scores_range
        if scores_range is None:
            return pi_range
        return min(pi_range[0], scores_range[0]), max(pi_range[1], scores_range[1])

    # === ACCESSORS
    def index(self, v: Node) -> int:
        ix = self.order_hash.get(v)
        if ix is None:
            raise ValueError("%s has not been scored" % (v,))
        return ix

    def get(self, j: int) -> Node:
        return self.pi[j]

    def get_pi(self) -> List[Node]:
        return list(self.pi)

    def get_order_shallow(self) -> List[Node]:
        return self.pi

    def size(self) -> int:
        return len(self.pi)

    def get_prefix(self, i: int) -> List[Node]:
        return self.pi[:i]

    def get_parents_at(self, p: int) -> Set[Node]:
        return set(self.scores[p].parents)

    def get_parents(self, v: Node) -> Set[Node]:
        return self.get_parents_at(self.index(v))

    def get_ancestors(self, node: Node) -> Set[Node]:
        """
        Return the ancestors of ``node`` in the graph given by the chosen parents, including ``node`` itself.
        """
        ancestors = {node}
        stack = [node]
        while stack:
            v = stack.pop()
            for parent in self.scores[self.index(v)].parents:
                if parent not in ancestors:
                    ancestors.add(parent)
                    stack.append(parent)
        return ancestors

    # === GRAPH QUERIES
    def parent(self, k: Node, j: Node) -> bool:
        """Return True if ``k`` is a parent of ``j``.
        """
        return k in self.scores[self.index(j)].parents

    def adjacent(self, a: Node, b: Node) -> bool:
        return self.parent(a, b) or self.parent(b, a)

    def covered_edge(self, x: Node, y: Node) -> bool:
        """
        Return True if ``x`` and ``y`` are adjacent and have the same parents apart from each other.
        """
        if not self.adjacent(x, y):
            return False
        return self.get_parents(x) - {y} == self.get_parents(y) - {x}

    def collider(self, a: Node, b: Node, c: Node) -> bool:
        return self.parent(a, b) and self.parent(c, b)

    def triangle(self, a: Node, b: Node, c: Node) -> bool:
        return self.adjacent(a, b) and self.adjacent(b, c) and self.adjacent(a, c)

    def clique(self, nodes: Sequence[Node]) -> bool:
        nodes = list(nodes)
        return all(self.adjacent(a, b) for i, a in enumerate(nodes) for b in nodes[i+1:])

    def get_adjacent_nodes(self, v: Node) -> Set[Node]:
        return {w for w in self.pi if w != v and self.adjacent(v, w)}

    def get_adjacencies(self) -> Set[FrozenSet[Node]]:
        return {frozenset({parent, node}) for node, parents in self._parent_items() for parent in parents}

    def get_skeleton(self) -> Dict[Node, Set[Node]]:
        skeleton = {node: set() for node in self.pi}
        for node, parents in self._parent_items():
            for parent in parents:
                skeleton[node].add(parent)
                skeleton[parent].add(node)
        return skeleton

    def get_edges(self) -> List[DirectedEdge]:
        return [(parent, node) for node, parents in self._parent_items() for parent in parents]

    def get_num_edges(self) -> int:
        return sum(len(position_score.parents) for position_score in self.scores)

    def _parent_items(self):
        return zip(self.pi, (position_score.parents for position_score in self.scores))

    def get_graph(self, cpdag=False):
        """
        Return the DAG given by the chosen parents, or its CPDAG if ``cpdag`` is True.
        """
        dag = DAG(nodes=set(self.pi), arcs=set(self.get_edges()))
        return dag.cpdag() if cpdag else dag

    def violates_knowledge(self, order: Sequence[Node]) -> bool:
        return self.knowledge.violates_knowledge(list(order))
