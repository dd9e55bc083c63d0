"""Base class for the DAGs produced by permutation search
"""

from collections import defaultdict, deque
import itertools as itr
import numpy as np
from causalgrasp.utils import core_utils
from causalgrasp.classes.custom_types import Node, DirectedEdge, NodeSet
from typing import Set, Iterable, FrozenSet, List


class CycleError(Exception):
    def __init__(self, cycle):
        self.cycle = cycle
        super().__init__('Adding arc(s) causes the cycle ' + '->'.join(map(str, cycle)))


class DAG:
    """
    Directed acyclic graph over hashable nodes.

    ``attributes`` holds free-form annotations attached by a search, e.g. the score of the permutation the DAG
    was read off from.

    Examples
    --------
    >>> import causalgrasp as cg
    >>> d = cg.DAG(arcs={(1, 2), (3, 2)})
    >>> d
    [1][3][2|1,3]
    """
    def __init__(self, nodes: Set = frozenset(), arcs: Set = frozenset()):
        self._nodes = set(nodes)
        self._arcs = set()
        self._parents = defaultdict(set)
        self._children = defaultdict(set)
        self.attributes = dict()
        for i, j in arcs:
            self.add_arc(i, j)

    def __eq__(self, other):
        if not isinstance(other, DAG):
            return False
        return self._nodes == other._nodes and self._arcs == other._arcs

    def __str__(self):
        return ''.join(
            '[%s|%s]' % (node, ','.join(map(str, sorted(self._parents[node], key=str))))
            if self._parents[node] else '[%s]' % (node,)
            for node in self.topological_sort()
        )

    def __repr__(self):
        return str(self)

    def copy(self):
        dag = DAG(nodes=self._nodes, arcs=self._arcs)
        dag.attributes = dict(self.attributes)
        return dag

    # === PROPERTIES
    @property
    def nodes(self) -> Set[Node]:
        return set(self._nodes)

    @property
    def arcs(self) -> Set[DirectedEdge]:
        return set(self._arcs)

    @property
    def num_arcs(self) -> int:
        return len(self._arcs)

    @property
    def skeleton(self) -> Set[FrozenSet]:
        return {frozenset({i, j}) for i, j in self._arcs}

    # === NODE PROPERTIES
    def parents_of(self, nodes: NodeSet) -> Set[Node]:
        """
        Return all nodes that are parents of the node or set of nodes ``nodes``.

        Examples
        --------
        >>> import causalgrasp as cg
        >>> g = cg.DAG(arcs={(1, 2), (2, 3)})
        >>> g.parents_of(2)
        {1}
        >>> g.parents_of({2, 3})
        {1, 2}
        """
        if isinstance(nodes, set):
            return set.union(set(), *(self._parents[n] for n in nodes))
        return set(self._parents[nodes])

    def children_of(self, node: Node) -> Set[Node]:
        return set(self._children[node])

    def neighbors_of(self, node: Node) -> Set[Node]:
        return self._parents[node] | self._children[node]

    def ancestors_of(self, nodes: NodeSet) -> Set[Node]:
        """
        Return all nodes with a directed path into (one of) ``nodes``.
        """
        return self._reach(core_utils.to_set(nodes), self._parents)

    def descendants_of(self, nodes: NodeSet) -> Set[Node]:
        """
        Return all nodes with a directed path from (one of) ``nodes``.
        """
        return self._reach(core_utils.to_set(nodes), self._children)

    @staticmethod
    def _reach(start, step):
        found = set()
        stack = list(start)
        while stack:
            for nxt in step[stack.pop()]:
                if nxt not in found:
                    found.add(nxt)
                    stack.append(nxt)
        return found

    def _directed_path(self, source, target) -> List[Node]:
        """Return a directed path from ``source`` to ``target``, or None if there is none.
        """
        previous = {source: None}
        queue = deque([source])
        while queue:
            node = queue.popleft()
            if node == target:
                path = []
                while node is not None:
                    path.append(node)
                    node = previous[node]
                return path[::-1]
            for child in self._children[node]:
                if child not in previous:
                    previous[child] = node
                    queue.append(child)
        return None

    # === ORDERS
    def topological_sort(self) -> List[Node]:
        """
        Return the nodes sorted so that every arc points forward. Ties are broken by the string form of the nodes.
        """
        indegree = {node: len(self._parents[node]) for node in self._nodes}
        ready = sorted((node for node, d in indegree.items() if d == 0), key=str)
        order = []
        while ready:
            node = ready.pop(0)
            order.append(node)
            for child in sorted(self._children[node], key=str):
                indegree[child] -= 1
                if indegree[child] == 0:
                    ready.append(child)
        return order

    def is_topological(self, order: list) -> bool:
        """
        Check that every arc ``i``->``j`` of the DAG has ``i`` before ``j`` in ``order``.

        Examples
        --------
        >>> import causalgrasp as cg
        >>> g = cg.DAG(arcs={(1, 2), (1, 3)})
        >>> g.is_topological([1, 3, 2])
        True
        >>> g.is_topological([2, 1, 3])
        False
        """
        node2ix = core_utils.ix_map_from_list(order)
        return all(node2ix[i] < node2ix[j] for i, j in self._arcs)

    # === GRAPH MODIFICATION
    def add_arc(self, i: Node, j: Node):
        """
        Add the arc ``i``->``j``. Raises a CycleError, leaving the DAG unchanged, if ``j`` is an ancestor of ``i``.

        Examples
        --------
        >>> import causalgrasp as cg
        >>> g = cg.DAG(arcs={(1, 2)})
        >>> g.add_arc(2, 1)
        Traceback (most recent call last):
        ...
        causalgrasp.classes.dag.CycleError: Adding arc(s) causes the cycle 1->2->1
        """
        path = self._directed_path(j, i)
        if path is not None:
            raise CycleError(path + [j])
        self._nodes.update((i, j))
        self._arcs.add((i, j))
        self._children[i].add(j)
        self._parents[j].add(i)

    def has_arc(self, source: Node, target: Node) -> bool:
        return (source, target) in self._arcs

    def arcs_in_vstructures(self) -> Set[DirectedEdge]:
        """
        Return the arcs ``i``->``j`` such that ``j`` has another parent not adjacent to ``i``.

        Example
        -------
        >>> import causalgrasp as cg
        >>> g = cg.DAG(arcs={(1, 3), (2, 3)})
        >>> g.arcs_in_vstructures()
        {(1, 3), (2, 3)}
        """
        return {(i, j) for i, j in self._arcs if self._parents[j] - self.neighbors_of(i) - {i}}

    # === COMPARISON
    def shd(self, other) -> int:
        """
        Return the structural Hamming distance to the DAG ``other``: the number of arcs to add, delete or reverse to
        turn one into the other.

        Example
        -------
        >>> import causalgrasp as cg
        >>> g1 = cg.DAG(arcs={(1, 2), (2, 3)})
        >>> g2 = cg.DAG(arcs={(2, 1), (2, 3)})
        >>> g1.shd(g2)
        1
        """
        differing = self.skeleton ^ other.skeleton
        reversed_arcs = {(i, j) for i, j in self._arcs if (j, i) in other._arcs}
        return len(differing) + len(reversed_arcs)

    # === SEPARATIONS
    def dsep(self, A: NodeSet, B: NodeSet, C: NodeSet = frozenset()) -> bool:
        """
        Check if ``A`` and ``B`` are d-separated given ``C``: no active trail leaves ``A`` and reaches ``B``.

        Example
        -------
        >>> import causalgrasp as cg
        >>> g = cg.DAG(arcs={(1, 2), (3, 2)})
        >>> g.dsep(1, 3)
        True
        >>> g.dsep(1, 3, 2)
        False
        """
        A, B, C = core_utils.to_set(A), core_utils.to_set(B), core_utils.to_set(C)
        # colliders are open when they or one of their descendants is observed
        opens_collider = C | self.ancestors_of(C)

        # a trail arrives at a node either from one of its children (up) or from one of its parents (down)
        seen = set()
        frontier = [(a, 'up') for a in A]
        while frontier:
            node, direction = frontier.pop()
            if (node, direction) in seen:
                continue
            seen.add((node, direction))
            if node in B:
                return False

            if node not in C:
                frontier.extend((child, 'down') for child in self._children[node])
                if direction == 'up':
                    frontier.extend((parent, 'up') for parent in self._parents[node])
            if direction == 'down' and node in opens_collider:
                frontier.extend((parent, 'up') for parent in self._parents[node])

        return True

    # === CONVERSION
    @classmethod
    def from_amat(cls, amat: np.ndarray, node_list=None):
        """
        Return a DAG with arcs given by ``amat``, i.e. i->j if ``amat[i,j] != 0``.

        Examples
        --------
        >>> import causalgrasp as cg
        >>> import numpy as np
        >>> amat = np.array([[0, 0, 1], [0, 0, 1], [0, 0, 0]])
        >>> d = cg.DAG.from_amat(amat)
        >>> d.arcs
        {(0, 2), (1, 2)}
        """
        if node_list is None:
            node_list = list(range(amat.shape[0]))
        arcs = {
            (node_list[i], node_list[j])
            for i, j in itr.permutations(range(amat.shape[0]), 2) if amat[i, j] != 0
        }
        return DAG(nodes=set(node_list), arcs=arcs)

    def to_amat(self, node_list=None) -> (np.ndarray, list):
        """
        Return an adjacency matrix for this DAG, together with the list of nodes indexing its rows and columns.
        """
        if not node_list:
            node_list = sorted(self._nodes)
        node2ix = core_utils.ix_map_from_list(node_list)

        amat = np.zeros((len(node_list), len(node_list)), dtype=int)
        for source, target in self._arcs:
            amat[node2ix[source], node2ix[target]] = 1
        return amat, node_list

    # === MEC
    def cpdag(self):
        """
        Return the CPDAG (essential graph) of the Markov equivalence class of this DAG: arcs in v-structures are kept,
        every other arc becomes undirected, and Meek's rules orient whatever is compelled.

        Examples
        --------
        >>> import causalgrasp as cg
        >>> g = cg.DAG(arcs={(1, 2), (2, 4), (3, 4)})
        >>> cpdag = g.cpdag()
        >>> cpdag.edges
        {frozenset({1, 2})}
        >>> cpdag.arcs
        {(2, 4), (3, 4)}
        """
        from causalgrasp.classes.pdag import PDAG
        vstruct = self.arcs_in_vstructures()
        pdag = PDAG(nodes=self._nodes, arcs=vstruct, edges=self._arcs - vstruct)
        pdag.apply_meek_rules()
        pdag.attributes.update(self.attributes)
        return pdag
