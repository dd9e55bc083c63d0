"""
Greedy relaxations of the sparsest permutation (GRaSP): a search over variable orders which moves nodes by tucks, and
explores tucks that leave the score unchanged up to a bounded depth.

See Lam, W.-Y., Andrews, B., & Ramsey, J. (2022). Greedy relaxations of the sparsest permutation algorithm.
"""

from typing import Optional, List, Sequence, Set, FrozenSet, Tuple, Union
import math
import random
import time
import threading
from tqdm import trange
from causalgrasp.classes.dag import DAG
from causalgrasp.classes.pdag import PDAG
from causalgrasp.classes.knowledge import Knowledge
from causalgrasp.classes.custom_types import Node, Tuck
from causalgrasp.utils.scores.score import Score
from causalgrasp.utils.ci_tests.ci_tester import CI_Tester
from causalgrasp.structure_learning.dag.parent_selection import MinimalImapSelector
from causalgrasp.structure_learning.dag.teyssier_scorer import TeyssierScorer


class Grasp:
    def __init__(
            self,
            score: Optional[Score]=None,
            ci_tester: Optional[CI_Tester]=None,
            knowledge: Optional[Knowledge]=None,
            depth: int=4,
            uncovered_depth: int=1,
            non_singular_depth: int=1,
            num_starts: int=1,
            use_data_order: bool=True,
            use_score: bool=True,
            use_raskutti_uhler: bool=False,
            ordered: bool=False,
            max_indegree: int=-1,
            seed: Optional[int]=None,
            rng: Optional[random.Random]=None,
            stop_event: Optional[threading.Event]=None,
            verbose: bool=False,
            progress_bar: bool=False
    ):
        """
        Search for the order whose chosen parents give the highest total score.

        Parameters
        ----------
        score:
            local score used to choose parents and rate orders.
        ci_tester:
            conditional independence tester, used when ``use_raskutti_uhler`` is True or no score is given.
        knowledge:
            background knowledge, respected by every order the search accepts.
        depth:
            maximum depth of the search through tucks that leave the score unchanged; unbounded if <= 0.
        uncovered_depth:
            depth up to which tucks of edges that are not covered are tried; unbounded if < 0.
        non_singular_depth:
            depth up to which tucks that move an ancestor with ``x`` as a parent are tried; unbounded if < 0.
        num_starts:
            number of restarts. Every restart after the first starts from a random order.
        use_data_order:
            if True, the first restart starts from the given order.
        use_score:
            if False, orders are rated by their number of edges instead of by the score.
        use_raskutti_uhler:
            if True, parents are those of the minimal I-map found with ``ci_tester``.
        ordered:
            if True, run the search with tucks of covered edges only, then with uncovered tucks, before running it with
            all tucks.
        max_indegree:
            maximum number of parents chosen for a node; unbounded if <= 0.
        seed:
            seed of the random number generator, used if ``rng`` is not given.
        rng:
            random number generator used to shuffle orders and the candidate tucks.
        stop_event:
            when set, the search returns the best order found so far.
        verbose:
            if True, print score improvements and the final order.
        progress_bar:
            if True, show a progress bar over the restarts.

        Examples
        --------
        >>> import causalgrasp as cg
        >>> d = cg.DAG(arcs={(0, 1), (1, 2)})
        >>> ci_tester = cg.MemoizedCI_Tester(cg.dsep_test, d)
        >>> search = cg.Grasp(ci_tester=ci_tester, use_raskutti_uhler=True, seed=1)
        >>> order = search.best_order([2, 1, 0])
        >>> search.get_num_edges()
        2
        """
        if score is None and ci_tester is None:
            raise ValueError("One of score or ci_tester must be given")
        if use_raskutti_uhler and ci_tester is None:
            raise ValueError("use_raskutti_uhler requires a ci_tester")

        self.score = score
        self.ci_tester = ci_tester
        self.knowledge = knowledge if knowledge is not None else Knowledge()
        self.depth = None
        self.uncovered_depth = uncovered_depth
        self.non_singular_depth = non_singular_depth
        self.set_depth(depth)
        self.num_starts = num_starts
        self.use_data_order = use_data_order
        self.use_score = use_score
        self.use_raskutti_uhler = use_raskutti_uhler
        self.ordered = ordered
        self.max_indegree = max_indegree
        self.rng = rng if rng is not None else random.Random(seed)
        self.stop_event = stop_event
        self.verbose = verbose
        self.progress_bar = progress_bar

        self.scorer = None
        self._start_time = None

    def set_depth(self, depth: int):
        if depth < -1:
            raise ValueError("Depth should be >= -1, got %d" % depth)
        self.depth = depth

    @property
    def stopped(self) -> bool:
        return self.stop_event is not None and self.stop_event.is_set()

    def _make_scorer(self, nodes: List[Node]) -> TeyssierScorer:
        if self.use_raskutti_uhler or self.score is None:
            return TeyssierScorer(
                nodes=nodes,
                knowledge=self.knowledge,
                selector=MinimalImapSelector(self.ci_tester, self.knowledge)
            )
        return TeyssierScorer(
            score=self.score,
            nodes=nodes,
            knowledge=self.knowledge,
            use_score=self.use_score,
            max_indegree=self.max_indegree
        )

    # === SEARCH
    def best_order(self, order: Sequence[Node]) -> List[Node]:
        """
        Run the search from ``order`` and return the best order found over all restarts. Raises a KnowledgeError if
        no order is consistent with the knowledge.
        """
        self._start_time = time.time()
        order = list(order)
        self.scorer = self._make_scorer(order)

        if len(order) <= 1:
            self.scorer.score(order)
            return order

        best_pi = None
        best_score = -math.inf
        restarts = trange(self.num_starts) if self.progress_bar else range(self.num_starts)
        for r in restarts:
            if self.stopped:
                break

            if r > 0 or not self.use_data_order:
                self.rng.shuffle(order)
            order = self.knowledge.knowledge_sorted(order)

            self.scorer.score(order)
            self.grasp(self.scorer)

            if best_pi is None or self.scorer.score() > best_score:
                best_pi = self.scorer.get_pi()
                best_score = self.scorer.score()
            order = self.scorer.get_pi()

        if best_pi is None:
            best_pi = self.knowledge.knowledge_sorted(order)
        self.scorer.score(best_pi)

        if self.verbose:
            print("Final order = %s" % best_pi)
            print("Elapsed time = %.3f s" % (time.time() - self._start_time))

        return best_pi

    def _depths(self) -> List[Tuple[float, float, float]]:
        depth = self.depth if self.depth >= 1 else math.inf
        uncovered_depth = self.uncovered_depth if self.uncovered_depth >= 0 else math.inf
        non_singular_depth = self.non_singular_depth if self.non_singular_depth >= 0 else math.inf

        depths = []
        # covered tucks only
        if self.ordered and self.uncovered_depth != 0 and self.non_singular_depth != 0:
            depths.append((depth, 0, 0))
        # with uncovered tucks
        if self.ordered and self.non_singular_depth != 0:
            depths.append((depth, uncovered_depth, 0))
        depths.append((depth, uncovered_depth, non_singular_depth))
        return depths

    def grasp(self, scorer: TeyssierScorer) -> List[Node]:
        """
        Improve the order of ``scorer`` by tucks until no search within the depth budgets improves its score, and
        return it.
        """
        scorer.clear_bookmarks()

        s_new = scorer.score()
        for depth in self._depths():
            while True:
                s_old = s_new
                self._grasp_dfs(scorer, s_old, depth, 1, set(), set())
                s_new = scorer.score()
                if not s_new > s_old or self.stopped:
                    break

        if self.verbose:
            print("# Edges = %d, Score = %s (GRaSP), Elapsed %.3f s" % (
                scorer.get_num_edges(), scorer.score(), time.time() - self._start_time
            ))

        return scorer.get_pi()

    def _grasp_dfs(
            self,
            scorer: TeyssierScorer,
            s_old: float,
            depth: Tuple[float, float, float],
            current_depth: int,
            tucks: Set[Tuck],
            dfs_history: Set[FrozenSet[Tuck]]
    ):
        """
        Try the tuck of every edge ``x->y`` in random order, and return as soon as the score improves on ``s_old``.
        Tucks which leave the score unchanged are followed by a search one level deeper.

        ``depth`` holds the maximum depth, the depth up to which uncovered tucks are tried, and the depth up to which
        non-singular tucks are tried. ``tucks`` holds the tucks on the current path, and ``dfs_history`` the sets of
        tucks already explored below the uncovered depth.
        """
        max_depth, uncovered_depth, non_singular_depth = depth
        ys = scorer.get_pi()
        self.rng.shuffle(ys)
        for y in ys:
            if self.stopped:
                return

            ancestors = scorer.get_ancestors(y)
            parents = sorted(scorer.get_parents(y), key=scorer.index)
            self.rng.shuffle(parents)
            for x in parents:
                covered = scorer.covered_edge(x, y)
                tuck = frozenset({x, y})

                if covered and tuck in tucks:
                    continue
                if current_depth > uncovered_depth and not covered:
                    continue

                x_index, y_index = scorer.index(x), scorer.index(y)
                singular = not any(
                    z in ancestors and x in scorer.get_parents(z)
                    for z in scorer.get_order_shallow()[x_index + 1:y_index]
                )
                scorer.bookmark(current_depth)
                scorer.tuck(y, x_index, bookmark=False)

                if current_depth > non_singular_depth and not singular:
                    scorer.go_to_bookmark(current_depth)
                    continue

                if scorer.violates_knowledge(scorer.get_order_shallow()):
                    scorer.go_to_bookmark(current_depth)
                    continue

                s_new = scorer.score()
                if s_new > s_old:
                    if self.verbose:
                        print("Edges: %d \t|\t Score Improvement: %f \t|\t Tucks Performed: %s %s" % (
                            scorer.get_num_edges(), s_new - s_old, tucks, set(tuck)
                        ))
                    return

                if s_new == s_old and current_depth < max_depth:
                    tucks.add(tuck)
                    if current_depth > uncovered_depth:
                        history_key = frozenset(tucks)
                        if history_key not in dfs_history:
                            dfs_history.add(history_key)
                            self._grasp_dfs(scorer, s_old, depth, current_depth + 1, tucks, dfs_history)
                    else:
                        self._grasp_dfs(scorer, s_old, depth, current_depth + 1, tucks, dfs_history)
                    tucks.discard(tuck)

                if scorer.score() > s_old:
                    return

                scorer.go_to_bookmark(current_depth)

    # === RESULTS
    def get_graph(self, cpdag=True) -> Union[DAG, PDAG]:
        """
        Return the DAG given by the best order, or its CPDAG with the orientations forced by the knowledge. The score
        of the order is stored in ``attributes['score']``.
        """
        if self.scorer is None:
            raise ValueError("best_order has not been run")
        graph = self.scorer.get_graph(cpdag=False)
        if cpdag:
            graph = graph.cpdag()
            graph.orient_with_knowledge(self.knowledge)
        graph.attributes['score'] = self.scorer.score()
        return graph

    def get_num_edges(self) -> int:
        if self.scorer is None:
            raise ValueError("best_order has not been run")
        return self.scorer.get_num_edges()


def grasp(
        nodes: Sequence[Node],
        score: Optional[Score]=None,
        ci_tester: Optional[CI_Tester]=None,
        knowledge: Optional[Knowledge]=None,
        depth: int=4,
        num_starts: int=1,
        cpdag: bool=True,
        **kwargs
) -> (Union[DAG, PDAG], List[Node]):
    """
    Use the GRaSP algorithm to estimate the Markov equivalence class of the data-generating DAG.

    Parameters
    ----------
    nodes:
        Labels of nodes in the graph, in the order the search starts from.
    score:
        local score used to choose parents and rate orders.
    ci_tester:
        A conditional independence tester, which has a method is_ci taking two nodes and a conditioning set, and
        returns True/False.
    knowledge:
        background knowledge on forbidden and required arcs.
    depth:
        Maximum depth of the search through tucks which leave the score unchanged. Use -1 for unbounded depth.
    num_starts:
        Number of runs of the algorithm. Each run after the first starts at a random permutation, and the best scoring
        DAG from all runs is returned.
    cpdag:
        if True, return the CPDAG of the estimated DAG.
    **kwargs:
        Additional keyword arguments passed to ``Grasp``.

    See Also
    --------
    Grasp

    Return
    ------
    (est_graph, best_order)

    Examples
    --------
    >>> import causalgrasp as cg
    >>> d = cg.DAG(arcs={(0, 1), (2, 1)})
    >>> ci_tester = cg.MemoizedCI_Tester(cg.dsep_test, d)
    >>> est_cpdag, order = cg.grasp([0, 1, 2], ci_tester=ci_tester, use_raskutti_uhler=True, seed=0)
    >>> est_cpdag.arcs
    {(0, 1), (2, 1)}
    """
    search = Grasp(score=score, ci_tester=ci_tester, knowledge=knowledge, depth=depth, num_starts=num_starts, **kwargs)
    best_order = search.best_order(nodes)
    return search.get_graph(cpdag=cpdag), best_order
