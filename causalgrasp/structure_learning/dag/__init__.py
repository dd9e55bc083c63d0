from .parent_selection import PositionScore, ParentSelector, GrowShrinkSelector, SparseGrowShrinkSelector, \
    MinimalImapSelector
from .teyssier_scorer import TeyssierScorer
from .grasp import Grasp, grasp
from .sepsets import SepsetsTeyssier

__all__ = [
    'PositionScore',
    'ParentSelector',
    'GrowShrinkSelector',
    'SparseGrowShrinkSelector',
    'MinimalImapSelector',
    'TeyssierScorer',
    'Grasp',
    'grasp',
    'SepsetsTeyssier',
]
