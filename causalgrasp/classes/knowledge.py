"""
Background knowledge: forbidden and required arcs, and temporal tiers.
"""

from typing import Set, List, Optional, Iterable
import networkx as nx
from causalgrasp.classes.custom_types import Node, DirectedEdge
from causalgrasp.utils import core_utils


class KnowledgeError(Exception):
    pass


class Knowledge:
    """
    Background knowledge about which arcs may or must appear in a graph.

    Parameters
    ----------
    forbidden:
        Pairs (i, j) such that the arc i->j may not appear.
    required:
        Pairs (i, j) such that the arc i->j must appear. A required arc forbids its reverse.
    tiers:
        List of sets of nodes. A node may not cause a node in an earlier tier.
    forbidden_within_tiers:
        Indices of tiers inside which no arcs are allowed.

    Examples
    --------
    >>> import causalgrasp as cg
    >>> k = cg.Knowledge(required={('b', 'a')}, tiers=[{'c'}, {'a', 'b'}])
    >>> k.is_forbidden('a', 'b')
    True
    >>> k.is_forbidden('a', 'c')
    True
    >>> k.is_forbidden('c', 'a')
    False
    """
    def __init__(
            self,
            forbidden: Set[DirectedEdge]=frozenset(),
            required: Set[DirectedEdge]=frozenset(),
            tiers: Optional[List[Set[Node]]]=None,
            forbidden_within_tiers: Set[int]=frozenset()
    ):
        self._forbidden = set()
        self._required = set()
        self._tiers = []
        self._node2tier = dict()
        self._forbidden_within_tiers = set(forbidden_within_tiers)

        for i, j in forbidden:
            self.set_forbidden(i, j)
        for i, j in required:
            self.set_required(i, j)
        for tier, nodes in enumerate(tiers or []):
            for node in nodes:
                self.add_to_tier(tier, node)

    def __str__(self):
        return 'Knowledge(forbidden=%s, required=%s, tiers=%s)' % (self._forbidden, self._required, self._tiers)

    def __repr__(self):
        return str(self)

    def copy(self):
        return Knowledge(
            forbidden=self._forbidden,
            required=self._required,
            tiers=self._tiers,
            forbidden_within_tiers=self._forbidden_within_tiers
        )

    # === PROPERTIES
    @property
    def is_empty(self) -> bool:
        return not self._forbidden and not self._required and not self._node2tier

    @property
    def forbidden_edges(self) -> Set[DirectedEdge]:
        return set(self._forbidden)

    @property
    def required_edges(self) -> Set[DirectedEdge]:
        return set(self._required)

    @property
    def tiers(self) -> List[Set[Node]]:
        return [set(tier) for tier in self._tiers]

    def tier_of(self, node: Node) -> Optional[int]:
        return self._node2tier.get(node)

    # === MUTATORS
    def set_forbidden(self, i: Node, j: Node):
        if (i, j) in self._required:
            raise KnowledgeError('%s->%s is already required' % (i, j))
        self._forbidden.add((i, j))

    def set_required(self, i: Node, j: Node):
        if (i, j) in self._forbidden:
            raise KnowledgeError('%s->%s is already forbidden' % (i, j))
        if self._tier_forbids(i, j):
            raise KnowledgeError('%s->%s is forbidden by the tiers' % (i, j))
        if (j, i) in self._required:
            raise KnowledgeError('%s->%s and %s->%s cannot both be required' % (i, j, j, i))
        self._required.add((i, j))

    def add_to_tier(self, tier: int, node: Node):
        if node in self._node2tier and self._node2tier[node] != tier:
            raise KnowledgeError('%s is already in tier %d' % (node, self._node2tier[node]))
        while len(self._tiers) <= tier:
            self._tiers.append(set())
        self._tiers[tier].add(node)
        self._node2tier[node] = tier
        for i, j in self._required:
            if node in (i, j) and self._tier_forbids(i, j):
                self._tiers[tier].remove(node)
                del self._node2tier[node]
                raise KnowledgeError('Putting %s in tier %d forbids the required arc %s->%s' % (node, tier, i, j))

    # === QUERIES
    def is_forbidden(self, i: Node, j: Node) -> bool:
        """
        Return True if the arc ``i``->``j`` is ruled out, explicitly, by a required ``j``->``i``, or by tiers.
        """
        if (i, j) in self._forbidden or (j, i) in self._required:
            return True
        return self._tier_forbids(i, j)

    def _tier_forbids(self, i, j):
        tier_i, tier_j = self._node2tier.get(i), self._node2tier.get(j)
        if tier_i is None or tier_j is None:
            return False
        if tier_i > tier_j:
            return True
        return tier_i == tier_j and tier_i in self._forbidden_within_tiers

    def is_required(self, i: Node, j: Node) -> bool:
        return (i, j) in self._required

    def must_follow(self, i: Node, j: Node) -> bool:
        """
        Return True if ``i`` has to come after ``j`` in any order, i.e. ``i``->``j`` is forbidden while
        ``j``->``i`` is not. Pairs forbidden in both directions only rule out adjacency.
        """
        return self.is_forbidden(i, j) and not self.is_forbidden(j, i)

    def must_precede(self, i: Node, j: Node) -> bool:
        """
        Return True if ``i`` has to come before ``j``, either because of a required arc or forbidden arcs between
        them or because ``i`` sits in an earlier tier.
        """
        if self.is_required(i, j) or self.must_follow(j, i):
            return True
        tier_i, tier_j = self._node2tier.get(i), self._node2tier.get(j)
        return tier_i is not None and tier_j is not None and tier_i < tier_j

    def violates_knowledge(self, order: list) -> bool:
        """
        Return True if some node in ``order`` comes before a node which it has to follow.
        """
        if self.is_empty:
            return False
        return any(
            self.must_precede(order[j], order[i])
            for i in range(len(order)) for j in range(i + 1, len(order))
        )

    def knowledge_sorted(self, order: Iterable[Node]) -> List[Node]:
        """
        Return ``order`` rearranged so that the required and forbidden arcs are consistent with it. Nodes that are
        not constrained relative to each other keep their relative order.

        Raises a KnowledgeError if no such order exists.

        Examples
        --------
        >>> import causalgrasp as cg
        >>> k = cg.Knowledge(required={(3, 1)})
        >>> k.knowledge_sorted([1, 2, 3])
        [2, 3, 1]
        """
        order = list(order)
        if self.is_empty:
            return order

        node2ix = core_utils.ix_map_from_list(order)
        g = nx.DiGraph()
        g.add_nodes_from(order)
        for a in order:
            for b in order:
                if a != b and self.must_precede(a, b):
                    g.add_edge(a, b)

        try:
            return list(nx.lexicographical_topological_sort(g, key=node2ix.get))
        except nx.NetworkXUnfeasible:
            raise KnowledgeError('The background knowledge admits no consistent order of %s' % order)
