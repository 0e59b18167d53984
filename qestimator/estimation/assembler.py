from __future__ import annotations

import logging

import torch

from .eigen import EigenBasis, real_part

logger = logging.getLogger(__name__)


def recover_rate_matrix(eigenvalues: torch.Tensor, basis: EigenBasis) -> torch.Tensor:
    r"""Compute :math:`Q = 0.01 V_r \mathrm{diag}(\lambda) V_l`."""
    diag = eigenvalues.to(dtype=basis.right.dtype).diag_embed()
    return real_part(0.01 * basis.right @ diag @ basis.left)


def repair_negative_rates(Q: torch.Tensor) -> torch.Tensor:
    """Replace negative off-diagonal rates and restore zero row sums.

    Negative rates are replaced by the smallest non-zero absolute value of the
    matrix, then each diagonal entry is set to minus the sum of the
    off-diagonal entries of its row.
    """
    Q = Q.clone()
    state_count = Q.shape[-1]
    off_diagonal = ~torch.eye(state_count, dtype=torch.bool)
    negative = (Q < 0.0) & off_diagonal
    if torch.any(negative):
        magnitudes = Q.abs()
        smallest = magnitudes[magnitudes > 0.0].min()
        logger.debug(
            'Replacing {} negative rate(s) with {}'.format(
                int(negative.sum()), smallest.item()
            )
        )
        Q[negative] = smallest
    Q[range(state_count), range(state_count)] = 0.0
    Q[range(state_count), range(state_count)] = -torch.sum(Q, dim=-1)
    return Q


def normalize_rate_matrix(Q: torch.Tensor, equilibrium: torch.Tensor) -> torch.Tensor:
    """Scale Q to an expected rate of 0.01 substitutions per site, that is one
    PAM unit per unit of distance."""
    rate = -torch.sum(torch.diagonal(Q, dim1=-2, dim2=-1) * equilibrium, -1)
    return Q / (rate * 100.0)


def assemble_rate_matrix(eigenvalues: torch.Tensor, basis: EigenBasis) -> torch.Tensor:
    """Build a normalized rate matrix from estimated eigenvalues.

    :param eigenvalues: eigenvalues from the regressions
    :param EigenBasis basis: eigenvector basis and equilibrium distribution
    :return: rate matrix with non-negative off-diagonal rates and zero row sums
    """
    Q = recover_rate_matrix(eigenvalues, basis)
    Q = repair_negative_rates(Q)
    return normalize_rate_matrix(Q, basis.equilibrium)
