from __future__ import annotations

import logging

import torch
import torch.linalg

from ..core.utils import InsufficientDataError
from .eigen import EigenBasis, real_part, row_normalize
from .grid import DistanceGrid
from .options import WeightingMode

logger = logging.getLogger(__name__)


def weighted_matrices(
    posterior: torch.Tensor, counts: torch.Tensor, grid: DistanceGrid
) -> tuple[torch.Tensor, torch.Tensor]:
    """Aggregate the count matrices at each distance of the grid.

    The count matrix of a pair contributes to distance d with the posterior
    mass of the pair at d (density times trapezoidal weight).

    :param posterior: posterior densities (pairs x grid)
    :param counts: count matrices (pairs x M x M)
    :param DistanceGrid grid: distances
    :return: row-normalized matrices (grid x M x M) and total mass at each
        distance (grid)
    """
    masses = posterior * grid.weights
    weighted = torch.einsum('pg,pij->gij', masses, counts)
    return row_normalize(weighted), masses.sum(0)


def regress_eigenvalues(
    posterior: torch.Tensor,
    counts: torch.Tensor,
    basis: EigenBasis,
    grid: DistanceGrid,
    max_divergence: float,
    weighting: WeightingMode = WeightingMode.POSTERIOR,
    min_points: int = 5,
) -> torch.Tensor:
    r"""Estimate the eigenvalues of the rate matrix.

    For each distance :math:`d` the expected eigenvalues of the aggregated
    matrix :math:`P(d)` are :math:`\mathrm{diag}(V_l P(d) V_r)`. Since
    :math:`P(d) = e^{Qd/100}` on the eigenvector basis, the log of each expected
    eigenvalue is linear in :math:`d/100` and its slope is estimated by least
    squares through the origin, each point being weighted by the posterior mass
    :math:`W(d)`. Non-positive expected eigenvalues are left out of the fit.

    :param posterior: posterior densities (pairs x grid)
    :param counts: count matrices (pairs x M x M)
    :param EigenBasis basis: fixed eigenvector basis
    :param DistanceGrid grid: distances
    :param float max_divergence: distances above this value are ignored
    :param WeightingMode weighting: weighting of the data points
    :param int min_points: minimum number of data points for each regression
    :return: eigenvalues of the rate matrix, the stationary one being 0
    """
    P, mass = weighted_matrices(posterior, counts, grid)
    usable = grid.truncate(max_divergence) & (mass > 0.0)
    distances = grid.distances[usable]
    mass = mass[usable]
    expected = basis.project(P[usable])

    if weighting == WeightingMode.POSTERIOR:
        x = distances / 100.0 * mass
    else:
        x = distances / 100.0
        mass = torch.ones_like(mass)

    state_count = basis.right.shape[-1]
    eigenvalues = torch.zeros(state_count, dtype=torch.float64)
    for index in range(state_count):
        if index == basis.equilibrium_index:
            continue
        elambda = expected[..., index]
        positive = real_part(elambda) > 0.0
        if positive.sum() < min_points:
            raise InsufficientDataError(
                'Only {} usable distance(s) to estimate eigenvalue {} (at least {}'
                ' required)'.format(int(positive.sum()), index, min_points)
            )
        y = mass[positive] * torch.log(elambda[positive])
        A = x[positive].to(dtype=y.dtype).unsqueeze(-1)
        solution = torch.linalg.lstsq(A, y.unsqueeze(-1)).solution.squeeze()
        if solution.is_complex():
            if solution.imag.abs() > 0.0:
                logger.debug(
                    'Eigenvalue {} is complex ({}), keeping its real part'.format(
                        index, solution.item()
                    )
                )
            solution = solution.real
        eigenvalues[index] = solution
    return eigenvalues
