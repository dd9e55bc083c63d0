import numpy as np
import numba
from causalgrasp.utils.scores.score import DecomposableScore


@numba.jit
def numba_inv(A):
    return np.linalg.inv(A)


def gaussian_bic_suffstat(samples):
    """
    Sufficient statistics for the Gaussian BIC score from an (n x p) matrix of samples.
    """
    n = samples.shape[0]
    return dict(S=np.cov(samples, rowvar=False), n=n)


def local_gaussian_bic_score(node, parents, suffstat, lambda_=None):
    """
    BIC score of a linear Gaussian model regressing ``node`` on ``parents``.

    Parameters
    ----------
    node:
        index of the target variable in the covariance matrix.
    parents:
        indices of the parents in the covariance matrix.
    suffstat:
        dictionary containing 'S' (sample covariance) and 'n' (number of samples).
    lambda_:
        coefficient of the penalty per parameter, -.5*log(n) if None.
    """
    n = suffstat["n"]
    lambda_ = lambda_ if lambda_ is not None else -.5 * np.log(n)
    i, p = node, list(parents)
    C = suffstat['S'] * (n-1)/n
    var = C[i, i] if not p else C[i, i] - C[i, p] @ numba_inv(C[np.ix_(p, p)]) @ C[p, i]
    log_prob = -.5*n*(1 + np.log(2*np.pi*var))
    penalty_term = lambda_*(2 + len(p))

    return log_prob + penalty_term


class GaussianBicScore(DecomposableScore):
    """
    Memoized linear Gaussian BIC score.

    Examples
    --------
    >>> import causalgrasp as cg
    >>> import numpy as np
    >>> samples = np.random.normal(size=(100, 3))
    >>> score = cg.GaussianBicScore(cg.gaussian_bic_suffstat(samples))
    >>> score.variables
    [0, 1, 2]
    """
    def __init__(self, suffstat, nodes=None, lambda_=None, memoize=True):
        if nodes is None:
            nodes = list(range(suffstat['S'].shape[0]))
        DecomposableScore.__init__(self, local_gaussian_bic_score, suffstat, nodes, memoize=memoize, lambda_=lambda_)
