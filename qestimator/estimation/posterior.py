"""Posterior distributions of the evolutionary distance of sequence pairs.

Both estimators return a tensor of densities with one row per pair and one
column per distance of the grid. Each row integrates to 1 with the
trapezoidal rule of :class:`~qestimator.estimation.grid.DistanceGrid`.
"""

from __future__ import annotations

import logging

import torch
from torch.distributions import Binomial, Normal

from .grid import DistanceGrid

logger = logging.getLogger(__name__)


def _normalize(likelihoods: torch.Tensor, grid: DistanceGrid) -> torch.Tensor:
    return likelihoods / grid.integrate(likelihoods).unsqueeze(-1)


def _log_normalize(log_likelihoods: torch.Tensor, grid: DistanceGrid) -> torch.Tensor:
    log_integral = torch.logsumexp(log_likelihoods + grid.weights.log(), -1)
    return torch.exp(log_likelihoods - log_integral.unsqueeze(-1))


def jukes_cantor_posterior(counts: torch.Tensor, grid: DistanceGrid) -> torch.Tensor:
    r"""Posterior of the distance under a Jukes-Cantor like model.

    A column is conserved with probability :math:`e^{-d/100}` at distance
    :math:`d` and the number of conserved columns of a pair is binomially
    distributed. If the binomial probabilities underflow a normal
    approximation with the same mean and variance is used instead.

    :param counts: count matrices (pairs x M x M)
    :param DistanceGrid grid: distances
    :return: posterior densities (pairs x grid)
    """
    totals = counts.sum((-2, -1)).unsqueeze(-1)
    matches = torch.diagonal(counts, dim1=-2, dim2=-1).sum(-1).unsqueeze(-1)
    p = torch.exp(-grid.distances / 100.0)

    # counts are not necessarily integers
    binomial = Binomial(totals, probs=p, validate_args=False)
    likelihoods = torch.exp(binomial.log_prob(matches))
    posterior = _normalize(likelihoods, grid)

    unstable = ~torch.all(torch.isfinite(posterior), -1)
    if torch.any(unstable):
        logger.warning(
            'Binomial likelihood is numerically unstable for {} pair(s), using a'
            ' normal approximation'.format(int(unstable.sum()))
        )
        mean = totals[unstable] * p
        scale = torch.sqrt(totals[unstable] * p * (1.0 - p))
        log_likelihoods = Normal(mean, scale).log_prob(matches[unstable])
        posterior[unstable] = _log_normalize(log_likelihoods, grid)
    return posterior


def log_transition_probabilities(
    Q: torch.Tensor, equilibrium: torch.Tensor, grid: DistanceGrid
) -> torch.Tensor:
    r"""Compute :math:`\log(\mathrm{diag}(\pi) e^{Qd})` for every distance
    :math:`d` of the grid.

    :return: tensor of shape (grid x M x M)
    """
    P = torch.linalg.matrix_exp(Q * grid.distances.reshape(-1, 1, 1))
    joint = equilibrium.unsqueeze(-1) * P
    return torch.log(joint.clamp_min(torch.finfo(joint.dtype).tiny))


def model_posterior(
    counts: torch.Tensor,
    Q: torch.Tensor,
    equilibrium: torch.Tensor,
    grid: DistanceGrid,
) -> torch.Tensor:
    """Posterior of the distance under the rate matrix Q.

    The log-likelihood of a pair at distance d is the sum of its count matrix
    multiplied element-wise by the log joint probabilities of residue pairs at
    distance d. Normalization is done in log space.

    :param counts: count matrices (pairs x M x M)
    :param Q: rate matrix
    :param equilibrium: equilibrium distribution of Q
    :param DistanceGrid grid: distances
    :return: posterior densities (pairs x grid)
    """
    log_probabilities = log_transition_probabilities(Q, equilibrium, grid)
    log_likelihoods = torch.einsum('pij,gij->pg', counts, log_probabilities)
    return _log_normalize(log_likelihoods, grid)
