from .dag import PositionScore, ParentSelector, GrowShrinkSelector, SparseGrowShrinkSelector, MinimalImapSelector, \
    TeyssierScorer, Grasp, grasp, SepsetsTeyssier
