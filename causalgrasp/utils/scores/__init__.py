from .score import Score, DecomposableScore, FunctionScore
from .gaussian_bic_score import GaussianBicScore, local_gaussian_bic_score, gaussian_bic_suffstat
