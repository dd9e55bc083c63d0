from causalgrasp.classes.dag import DAG
from typing import Union, List


def dsep_test(
        dag: DAG,
        i,
        j,
        cond_set: Union[List, set]=None
):
    """
    Oracle conditional independence test: ``i`` and ``j`` are independent given ``cond_set`` exactly when they are
    d-separated in ``dag``.
    """
    return dict(reject=not dag.dsep({i}, {j}, set(cond_set) if cond_set is not None else set()))
