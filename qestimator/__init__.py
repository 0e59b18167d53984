"""This is the root package of qestimator."""
from ._version import __version__
from .estimation.estimator import (
    EstimationResult,
    RateMatrixEstimator,
    estimate_rate_matrix,
)
from .estimation.options import EquilibriumMode, EstimatorOptions, WeightingMode

__all__ = [
    'EquilibriumMode',
    'EstimationResult',
    'EstimatorOptions',
    'RateMatrixEstimator',
    'WeightingMode',
    'estimate_rate_matrix',
]
