"""
Partially directed acyclic graphs, used to represent Markov equivalence classes of the DAGs found by search.
"""

from collections import defaultdict
from causalgrasp.utils import core_utils
import itertools as itr
import numpy as np
from typing import Set


class PDAG:
    def __init__(
            self,
            nodes: Set=frozenset(),
            arcs: Set=frozenset(),
            edges: Set=frozenset(),
    ):
        self._nodes = set(nodes)
        self._arcs = set()
        self._edges = set()
        self._parents = defaultdict(set)
        self._children = defaultdict(set)
        self._neighbors = defaultdict(set)
        self._undirected_neighbors = defaultdict(set)
        for i, j in arcs:
            self._add_arc(i, j)
        for i, j in edges:
            self._add_edge(i, j)
        self.attributes = dict()

    @classmethod
    def from_amat(cls, amat):
        """Return a PDAG with arcs/edges given by amat; a symmetric pair of entries is an undirected edge.
        """
        nrows, ncols = amat.shape
        arcs = set()
        edges = set()
        for (i, j), val in np.ndenumerate(amat):
            if val != 0:
                if (j, i) in arcs:
                    arcs.remove((j, i))
                    edges.add((i, j))
                else:
                    arcs.add((i, j))
        return PDAG(set(range(nrows)), arcs, edges)

    def __eq__(self, other):
        if not isinstance(other, PDAG):
            return False
        return self._nodes == other._nodes and self._arcs == other._arcs and self._edges == other._edges

    def __str__(self):
        substrings = []
        for node in self._nodes:
            parents = self._parents[node]
            nbrs = self._undirected_neighbors[node]
            parents_str = ','.join(map(str, parents))
            nbrs_str = ','.join(map(str, nbrs))

            if len(parents) == 0 and len(nbrs) == 0:
                substrings.append('[{node}]'.format(node=node))
            else:
                substrings.append('[{node}|{parents}:{nbrs}]'.format(node=node, parents=parents_str, nbrs=nbrs_str))
        return ''.join(substrings)

    def __repr__(self):
        return str(self)

    def copy(self):
        """Return a copy of the graph
        """
        pdag = PDAG(nodes=self._nodes, arcs=self._arcs, edges=self._edges)
        pdag.attributes = dict(self.attributes)
        return pdag

    # === PROPERTIES
    @property
    def nodes(self):
        return set(self._nodes)

    @property
    def nnodes(self):
        return len(self._nodes)

    @property
    def num_arcs(self):
        return len(self._arcs)

    @property
    def num_edges(self):
        return len(self._edges)

    @property
    def num_adjacencies(self):
        return self.num_arcs + self.num_edges

    @property
    def arcs(self):
        return set(self._arcs)

    @property
    def edges(self):
        return set(self._edges)

    @property
    def parents(self):
        return core_utils.defdict2dict(self._parents, self._nodes)

    @property
    def children(self):
        return core_utils.defdict2dict(self._children, self._nodes)

    @property
    def neighbors(self):
        return core_utils.defdict2dict(self._neighbors, self._nodes)

    @property
    def undirected_neighbors(self):
        return core_utils.defdict2dict(self._undirected_neighbors, self._nodes)

    @property
    def skeleton(self):
        return {frozenset({i, j}) for i, j in self._arcs} | self._edges

    # === PROPERTIES W/ ARGUMENTS
    def parents_of(self, node):
        return set(self._parents[node])

    def children_of(self, node):
        return set(self._children[node])

    def neighbors_of(self, node):
        return set(self._neighbors[node])

    def undirected_neighbors_of(self, node):
        return set(self._undirected_neighbors[node])

    def has_edge(self, i, j):
        """Return True if the graph contains the edge i--j
        """
        return frozenset({i, j}) in self._edges

    def has_arc(self, i, j):
        """Return True if the graph contains the arc i->j"""
        return (i, j) in self._arcs

    def has_edge_or_arc(self, i, j):
        """Return True if the graph contains the edge i--j or an arc i->j or i<-j
        """
        return (i, j) in self._arcs or (j, i) in self._arcs or self.has_edge(i, j)

    # === MUTATORS
    def _add_arc(self, i, j):
        self._nodes.add(i)
        self._nodes.add(j)
        self._arcs.add((i, j))

        self._neighbors[i].add(j)
        self._neighbors[j].add(i)

        self._children[i].add(j)
        self._parents[j].add(i)

    def _add_edge(self, i, j):
        self._nodes.add(i)
        self._nodes.add(j)
        self._edges.add(frozenset({i, j}))

        self._neighbors[i].add(j)
        self._neighbors[j].add(i)

        self._undirected_neighbors[i].add(j)
        self._undirected_neighbors[j].add(i)

    def remove_node(self, node):
        """Remove a node from the graph
        """
        self._nodes.remove(node)
        self._arcs = {(i, j) for i, j in self._arcs if i != node and j != node}
        self._edges = {e for e in self._edges if node not in e}
        for child in self._children[node]:
            self._parents[child].remove(node)
            self._neighbors[child].remove(node)
        for parent in self._parents[node]:
            self._children[parent].remove(node)
            self._neighbors[parent].remove(node)
        for u_nbr in self._undirected_neighbors[node]:
            self._undirected_neighbors[u_nbr].remove(node)
            self._neighbors[u_nbr].remove(node)
        self._parents.pop(node, None)
        self._children.pop(node, None)
        self._neighbors.pop(node, None)
        self._undirected_neighbors.pop(node, None)

    def _replace_edge_with_arc(self, arc):
        self._edges.remove(frozenset({*arc}))
        self._arcs.add(arc)
        i, j = arc
        self._parents[j].add(i)
        self._children[i].add(j)
        self._undirected_neighbors[i].remove(j)
        self._undirected_neighbors[j].remove(i)

    def _reverse_arc(self, arc):
        i, j = arc
        self._arcs.remove(arc)
        self._parents[j].remove(i)
        self._children[i].remove(j)
        self._arcs.add((j, i))
        self._parents[i].add(j)
        self._children[j].add(i)

    # === ORIENTATION
    def _meek_orients(self, i, j) -> bool:
        """
        Return True if one of Meek's rules compels the undirected edge i--j to be oriented as i->j.
        """
        # R1: k->i--j, k and j not adjacent
        if any(not self.has_edge_or_arc(k, j) for k in self._parents[i]):
            return True

        # R2: i->k->j
        if self._children[i] & self._parents[j]:
            return True

        # R3: i--k1->j, i--k2->j, k1 and k2 not adjacent
        candidates = self._undirected_neighbors[i] & self._parents[j]
        for k1, k2 in itr.combinations(candidates, 2):
            if not self.has_edge_or_arc(k1, k2):
                return True

        # R4: i--k2->k1->j, i adjacent to k1, k2 and j not adjacent
        for k1 in self._parents[j] & self._neighbors[i]:
            for k2 in self._parents[k1] & self._undirected_neighbors[i]:
                if not self.has_edge_or_arc(k2, j):
                    return True

        return False

    def apply_meek_rules(self):
        """
        Orient every undirected edge whose direction is compelled by Meek's rules R1-R4, repeating until no rule
        applies. Existing arcs are never changed.

        See Meek, C. (1995). Causal inference and causal explanation with background knowledge.
        """
        changed = True
        while changed:
            changed = False
            for edge in list(self._edges):
                i, j = tuple(edge)
                for arc in ((i, j), (j, i)):
                    if self._meek_orients(*arc):
                        self._replace_edge_with_arc(arc)
                        changed = True
                        break

    def orient_with_knowledge(self, knowledge):
        """
        Force the orientations implied by ``knowledge``: an adjacency whose one direction is forbidden is oriented the
        other way, a required direction is oriented as required, and tiers orient adjacencies forward. Meek's rules
        are then re-applied.
        """
        for i, j in list(self._arcs):
            if knowledge.must_precede(j, i):
                self._reverse_arc((i, j))

        for edge in list(self._edges):
            i, j = tuple(edge)
            if knowledge.must_precede(i, j):
                self._replace_edge_with_arc((i, j))
            elif knowledge.must_precede(j, i):
                self._replace_edge_with_arc((j, i))

        self.apply_meek_rules()

    # === CONVERSION
    def to_amat(self, node_list=None):
        """Return an adjacency matrix for the graph, together with the list of nodes indexing its rows and columns.
        Undirected edges are entered in both directions.
        """
        if node_list is None:
            node_list = sorted(self._nodes)
        node2ix = core_utils.ix_map_from_list(node_list)

        amat = np.zeros((len(self._nodes), len(self._nodes)), dtype=int)
        for source, target in self._arcs:
            amat[node2ix[source], node2ix[target]] = 1
        for i, j in self._edges:
            amat[node2ix[i], node2ix[j]] = 1
            amat[node2ix[j], node2ix[i]] = 1

        return amat, node_list

    def to_dag(self):
        """
        Return a DAG that is consistent with this PDAG, by repeatedly removing a sink whose undirected neighbors are
        adjacent to all of its other neighbors.

        Examples
        --------
        >>> import causalgrasp as cg
        >>> pdag = cg.PDAG(arcs={(1, 2)}, edges={(2, 3)})
        >>> pdag.to_dag().arcs
        {(1, 2), (2, 3)}
        """
        from causalgrasp.classes.dag import DAG

        pdag2 = self.copy()
        arcs = set()
        while len(pdag2._edges) + len(pdag2._arcs) != 0:
            is_sink = lambda n: len(pdag2._children[n]) == 0
            no_vstructs = lambda n: all(
                (pdag2._neighbors[n] - {u_nbr}).issubset(pdag2._neighbors[u_nbr])
                for u_nbr in pdag2._undirected_neighbors[n]
            )
            sink = next((n for n in pdag2._nodes if is_sink(n) and no_vstructs(n)), None)
            if sink is None:
                break
            arcs.update((nbr, sink) for nbr in pdag2._neighbors[sink])
            pdag2.remove_node(sink)

        return DAG(nodes=self._nodes, arcs=arcs)

    # === COMPARISON
    def shd(self, other):
        """Return the structural Hamming distance between this PDAG and another.

        For each pair of nodes, the SHD is incremented by 1 if the edge type/presence between the two nodes is different
        """
        self_skeleton = self.skeleton
        other_skeleton = other.skeleton
        num_additions = len(self_skeleton - other_skeleton)
        num_deletions = len(other_skeleton - self_skeleton)
        diff_type = {
            e for e in self_skeleton & other_skeleton
            if any((i, j) in self._arcs and (i, j) not in other._arcs for i, j in itr.permutations(e))
            or (e in self._edges and e not in other._edges)
        }
        return num_additions + num_deletions + len(diff_type)

    def shd_skeleton(self, other) -> int:
        return len(self.skeleton.symmetric_difference(other.skeleton))
