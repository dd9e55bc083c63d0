from typing import Hashable, Tuple, FrozenSet, Union, Set
Node = Hashable
DirectedEdge = Tuple[Node, Node]
NodeSet = Union[Hashable, Set[Hashable]]
# the edge x->y as an unordered pair {x, y}; its tuck moves y, with its ancestors between x and y, ahead of x
Tuck = FrozenSet[Node]
