from .ci_tester import MemoizedCI_Tester, PlainCI_Tester, CI_Tester
from .gauss_ci import gauss_ci_test, gauss_ci_suffstat, MemoizedGaussCI_Tester
from .oracle import dsep_test


def get_ci_tester(
        samples,
        test="gauss",
        memoize=False,
        **kwargs
):
    """
    Build a conditional independence tester from ``samples``; for ``test="dsep"``, ``samples`` is the oracle DAG.
    """
    if test == "gauss":
        ci_test = gauss_ci_test
        suffstat = gauss_ci_suffstat(samples)
    elif test == "dsep":
        ci_test = dsep_test
        suffstat = samples
    else:
        raise ValueError("test must be one of 'gauss' or 'dsep'")

    if memoize:
        return MemoizedCI_Tester(ci_test, suffstat, **kwargs)
    return PlainCI_Tester(ci_test, suffstat, **kwargs)
