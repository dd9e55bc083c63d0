from typing import Dict
from math import erf
import numba
import numpy as np
from numpy import sqrt, log1p, ix_, diag, corrcoef
from numpy.linalg import inv
from .ci_tester import MemoizedCI_Tester


@numba.jit
def numba_inv(A):
    return inv(A)


def gauss_ci_suffstat(samples, invert=True):
    """
    Sufficient statistics for ``gauss_ci_test`` from an (n x p) matrix of samples.

    Parameters
    ----------
    samples:
        (n x p) matrix, where n is the number of samples and p is the number of variables.
    invert:
        if True, also store the inverse correlation matrix and the partial correlation matrix, which speeds up tests
        with large conditioning sets.
    """
    n = samples.shape[0]
    C = corrcoef(samples, rowvar=False)
    if invert:
        K = numba_inv(C)
        rho = K/sqrt(diag(K))/sqrt(diag(K))[:, None]
        return dict(C=C, n=n, K=K, rho=rho)
    return dict(C=C, n=n)


def partial_correlation(suffstat: Dict, i, j, cond_set=None) -> float:
    C = suffstat['C']
    p = C.shape[0]
    rho = suffstat.get('rho')
    K = suffstat.get('K')
    cond_set = [] if cond_set is None else list(cond_set)

    if not cond_set:
        return C[i, j]
    if len(cond_set) == 1:
        k = cond_set[0]
        return (C[i, j] - C[i, k]*C[j, k]) / sqrt((1 - C[j, k]**2) * (1 - C[i, k]**2))
    if len(cond_set) == p - 2 and rho is not None:
        return -rho[i, j]
    # Schur complement of the precision matrix when most variables are conditioned on
    if len(cond_set) >= p/2 and K is not None:
        rest = list(set(range(p)) - {i, j, *cond_set})
        if len(rest) == 1:
            theta_ij = K[ix_([i, j], [i, j])] - K[ix_([i, j], rest)] @ K[ix_(rest, [i, j])] / K[rest[0], rest[0]]
        else:
            theta_ij = K[ix_([i, j], [i, j])] - K[ix_([i, j], rest)] @ numba_inv(K[ix_(rest, rest)]) @ K[ix_(rest, [i, j])]
        return -theta_ij[0, 1] / sqrt(theta_ij[0, 0] * theta_ij[1, 1])
    theta = numba_inv(C[ix_([i, j, *cond_set], [i, j, *cond_set])])
    return -theta[0, 1]/sqrt(theta[0, 0] * theta[1, 1])


def gauss_ci_test(suffstat: Dict, i, j, cond_set=None, alpha=0.01):
    """
    Test the null hypothesis that i and j are conditionally independent given cond_set via Fisher's z-transform.

    Parameters
    ----------
    suffstat:
        dictionary containing:
        'n' -- number of samples
        'C' -- correlation matrix
        'K' (optional) -- inverse correlation matrix
        'rho' (optional) -- partial correlation matrix (K, normalized so diagonals are 1).
    i:
        position of first variable in correlation matrix.
    j:
        position of second variable in correlation matrix.
    cond_set:
        positions of conditioning set in correlation matrix.
    alpha:
        Significance level.

    Return
    ------
    dictionary containing statistic, p_value, and reject.
    """
    n = suffstat['n']
    n_cond = 0 if cond_set is None else len(cond_set)
    r = np.clip(partial_correlation(suffstat, i, j, cond_set), -1 + 1e-12, 1 - 1e-12)

    # log1p(2r/(1-r)) = log((1+r)/(1-r)), stable for r near 0
    statistic = sqrt(n - n_cond - 3) * abs(.5 * log1p(2*r/(1 - r)))
    p_value = 1 - .5*(1 + erf(statistic/sqrt(2)))

    return dict(statistic=statistic, p_value=p_value, reject=p_value < alpha)


class MemoizedGaussCI_Tester(MemoizedCI_Tester):
    def __init__(self, suffstat: Dict, track_times=False, detailed=False, **kwargs):
        MemoizedCI_Tester.__init__(self, gauss_ci_test, suffstat, track_times=track_times, detailed=detailed, **kwargs)
