"""
causalgrasp
===========

causalgrasp is a Python package for learning causal DAGs by searching over variable orders with GRaSP.

Simple Example
--------------

>>> import causalgrasp as cg
>>> import numpy as np
>>> np.random.seed(12312)
>>> x0 = np.random.normal(size=1000)
>>> x1 = x0 + np.random.normal(size=1000)
>>> x2 = x1 + np.random.normal(size=1000)
>>> samples = np.stack([x0, x1, x2], axis=1)
>>> score = cg.GaussianBicScore(cg.gaussian_bic_suffstat(samples))
>>> est_cpdag, order = cg.grasp([2, 1, 0], score, seed=1)
>>> est_cpdag.edges
{frozenset({0, 1}), frozenset({1, 2})}
"""

from .classes import *
from .utils.scores import *
from .utils.ci_tests import *
from .structure_learning.dag import *
