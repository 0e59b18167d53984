from __future__ import annotations

import logging
from typing import NamedTuple

import torch
import torch.linalg

from ..core.runnable import Runnable
from ..core.utils import InsufficientDataError
from ..evolution.alignment import Sequence
from ..evolution.datatype import DataType
from ..evolution.replacement import ReplacementPair, collect_pairs
from .assembler import assemble_rate_matrix
from .eigen import EigenBasis, estimate_eigen_basis
from .options import EstimatorOptions
from .posterior import jukes_cantor_posterior, model_posterior
from .regression import regress_eigenvalues

logger = logging.getLogger(__name__)


class EstimationResult(NamedTuple):
    """Final rate matrix, equilibrium distribution and convergence trace.

    The trace contains the Frobenius norm of the difference between
    consecutive rate matrices, one entry per iteration.
    """

    Q: torch.Tensor
    equilibrium: torch.Tensor
    trace: list[float]
    pair_count: int


class RateMatrixEstimator(Runnable):
    """Iterative estimation of a rate matrix from replacement counts.

    A first pass uses a Jukes-Cantor posterior over distances to get an initial
    rate matrix. Each iteration then recomputes the posteriors under the
    current rate matrix and re-estimates the eigenvalues on the fixed
    eigenvector basis, until the rate matrix stops changing.

    :param counts: count matrices of the selected pairs (pairs x M x M)
    :param EstimatorOptions options: options
    """

    def __init__(self, counts: torch.Tensor, options: EstimatorOptions = None) -> None:
        if counts.dim() != 3 or counts.shape[0] == 0:
            raise InsufficientDataError(
                'At least one pair of sequences is needed to estimate a rate matrix'
            )
        self.counts = counts
        self.options = (EstimatorOptions() if options is None else options).validate()

    def bootstrap(self) -> tuple[torch.Tensor, EigenBasis]:
        """Initial estimate using a Jukes-Cantor posterior."""
        options = self.options
        basis = estimate_eigen_basis(
            self.counts, options.equilibrium, options.min_rcond
        )
        posterior = jukes_cantor_posterior(self.counts, options.grid)
        eigenvalues = regress_eigenvalues(
            posterior,
            self.counts,
            basis,
            options.grid,
            options.bootstrap_divergence,
            options.weighting,
            options.min_regression_points,
        )
        return assemble_rate_matrix(eigenvalues, basis), basis

    def iterate(self, Q: torch.Tensor, basis: EigenBasis) -> torch.Tensor:
        """One iteration: posteriors under Q, eigenvalues, new rate matrix."""
        options = self.options
        posterior = model_posterior(self.counts, Q, basis.equilibrium, options.grid)
        eigenvalues = regress_eigenvalues(
            posterior,
            self.counts,
            basis,
            options.grid,
            options.divergence,
            options.weighting,
            options.min_regression_points,
        )
        return assemble_rate_matrix(eigenvalues, basis)

    def run(self) -> EstimationResult:
        Q, basis = self.bootstrap()
        trace = []
        for iteration in range(self.options.max_iterations):
            Q_new = self.iterate(Q, basis)
            difference = torch.linalg.matrix_norm(Q_new - Q, 'fro').item()
            trace.append(difference)
            logger.info(
                'Iteration {}: difference {:.6g}'.format(iteration + 1, difference)
            )
            Q = Q_new
            if difference < self.options.threshold:
                break
        else:
            logger.info(
                'Stopped after {} iterations without reaching threshold {}'.format(
                    self.options.max_iterations, self.options.threshold
                )
            )
        return EstimationResult(Q, basis.equilibrium, trace, self.counts.shape[0])


def stack_counts(pairs: list[ReplacementPair]) -> torch.Tensor:
    if len(pairs) == 0:
        raise InsufficientDataError('No sequence pair to estimate a rate matrix from')
    return torch.stack([pair.counts for pair in pairs])


def estimate_rate_matrix(
    alignments: list[list[Sequence]],
    options: EstimatorOptions = None,
    data_type: DataType = None,
) -> EstimationResult:
    """Estimate a rate matrix from one or more alignments.

    :param alignments: alignments, each a list of sequences of equal length
    :param EstimatorOptions options: options
    :param DataType data_type: alphabet (default: amino acids)
    :return: estimation result
    """
    counts = stack_counts(collect_pairs(alignments, data_type))
    return RateMatrixEstimator(counts, options).run()
