from typing import List, Callable, Sequence
from causalgrasp.utils.core_utils import ix_map_from_list


class Score:
    """
    A decomposable score over ``variables``. Subclasses implement ``local_score``, which takes the index of a
    target variable and the indices of a candidate parent set, and returns a real number. Higher is better, and
    NaN or -inf mark a parent set as inadmissible.

    The same inputs must always give the same output.
    """
    def __init__(self, variables: Sequence):
        self.variables = list(variables)
        self.variables_hash = ix_map_from_list(self.variables)
        if len(self.variables_hash) != len(self.variables):
            raise ValueError("Variables must be distinct")

    def local_score(self, node: int, parents: List[int]) -> float:
        raise NotImplementedError

    def get_score(self, dag) -> float:
        """
        Return the total score of ``dag``, whose nodes are among ``variables``.
        """
        total_score = 0
        for node in dag.nodes:
            parent_ixs = [self.variables_hash[p] for p in dag.parents_of(node)]
            total_score += self.local_score(self.variables_hash[node], parent_ixs)
        return total_score


class DecomposableScore(Score):
    def __init__(self, local_score: Callable, suffstat, nodes: Sequence, memoize=True, **kwargs):
        """
        Score built from a local score function ``local_score(node, parents, suffstat, **kwargs)``.

        Parameters
        ----------
        local_score:
            Function returning the local score of ``node`` given ``parents``, both given as indices.
        suffstat:
            dictionary of sufficient statistics passed to ``local_score``.
        nodes:
            The variables, in the order used to index ``suffstat``.
        memoize:
            if True, store every local score that is computed.
        **kwargs:
            Additional keyword arguments to be passed to ``local_score``.
        """
        Score.__init__(self, nodes)
        self._local_score = local_score
        self.suffstat = suffstat
        self.kwargs = kwargs
        self.memoize = memoize
        self.score_dict = dict()

    def local_score(self, node, parents):
        if not self.memoize:
            return self._local_score(node, parents, self.suffstat, **self.kwargs)

        index = (node, frozenset(parents))
        score = self.score_dict.get(index)
        if score is not None:
            return score
        score = self._local_score(node, list(parents), self.suffstat, **self.kwargs)
        self.score_dict[index] = score
        return score


class FunctionScore(Score):
    """
    Score given directly by a function ``fn(node, parents)`` of variable indices, e.g. an oracle.

    Examples
    --------
    >>> import causalgrasp as cg
    >>> score = cg.FunctionScore(['a', 'b'], lambda node, parents: -len(parents))
    >>> score.local_score(1, [0])
    -1
    """
    def __init__(self, variables: Sequence, fn: Callable[[int, List[int]], float]):
        Score.__init__(self, variables)
        self.fn = fn

    def local_score(self, node, parents):
        return self.fn(node, list(parents))
