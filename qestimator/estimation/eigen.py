from __future__ import annotations

import logging
from typing import NamedTuple

import torch
import torch.linalg

from ..core.utils import EquilibriumError, InsufficientDataError, UnstableBasisError
from .options import EquilibriumMode

logger = logging.getLogger(__name__)


class EigenBasis(NamedTuple):
    r"""Eigendecomposition of the aggregated substitution pattern.

    The basis is estimated once and kept fixed while the eigenvalues are
    re-estimated at every iteration.

    :param right: right eigenvectors :math:`V_r` (columns)
    :param left: inverse of the right eigenvectors :math:`V_l = V_r^{-1}`
    :param eigenvalues: eigenvalues of the aggregated stochastic matrix
    :param equilibrium: equilibrium distribution
    :param int equilibrium_index: index of the stationary eigenvector
    """

    right: torch.Tensor
    left: torch.Tensor
    eigenvalues: torch.Tensor
    equilibrium: torch.Tensor
    equilibrium_index: int

    def project(self, P: torch.Tensor) -> torch.Tensor:
        r"""Return :math:`\mathrm{diag}(V_l P V_r)`, batched over the leading
        dimensions of P."""
        P = P.to(dtype=self.left.dtype)
        return torch.diagonal(self.left @ P @ self.right, dim1=-2, dim2=-1)


def real_part(tensor: torch.Tensor) -> torch.Tensor:
    return tensor.real if tensor.is_complex() else tensor


def symmetrized_sum(counts: torch.Tensor) -> torch.Tensor:
    """Sum of the count matrices averaged with their transposes."""
    return torch.sum((counts + counts.transpose(-2, -1)) / 2.0, 0)


def row_normalize(matrix: torch.Tensor) -> torch.Tensor:
    """Scale each row to sum to 1; empty rows stay zero."""
    total = matrix.sum(-1, keepdim=True)
    return torch.where(total > 0.0, matrix / total.clamp_min(1e-300), matrix)


def equilibrium_from_counts(counts: torch.Tensor) -> torch.Tensor:
    """Residue frequencies of the count matrices with one pseudo-count per
    residue."""
    total = torch.sum(counts, 0)
    frequencies = total.sum(-1) + total.sum(-2) + 1.0
    return frequencies / frequencies.sum()


def equilibrium_from_eigenvectors(left: torch.Tensor) -> tuple[torch.Tensor, int]:
    """Find the stationary distribution among the left eigenvectors.

    The stationary eigenvector is the only row of ``left`` whose entries all
    share the same sign.

    :param left: left eigenvectors as rows
    :return: normalized equilibrium distribution and its row index
    """
    rows = real_part(left)
    candidates = torch.nonzero(
        torch.all(rows > 0.0, -1) | torch.all(rows < 0.0, -1)
    ).flatten()
    if candidates.numel() == 0:
        raise EquilibriumError(
            'No eigenvector with entries of the same sign: cannot identify the'
            ' equilibrium distribution'
        )
    elif candidates.numel() > 1:
        raise EquilibriumError(
            '{} eigenvectors with entries of the same sign: cannot identify the'
            ' equilibrium distribution'.format(candidates.numel())
        )
    index = candidates.item()
    return rows[index] / rows[index].sum(), index


def estimate_eigen_basis(
    counts: torch.Tensor,
    mode: EquilibriumMode = EquilibriumMode.COUNTS,
    min_rcond: float = 0.01,
) -> EigenBasis:
    """Estimate the eigenvector basis and the equilibrium distribution.

    The count matrices are symmetrized, summed and row-normalized into a
    stochastic matrix whose eigenvectors define the basis.

    :param counts: count matrices of the selected pairs (pairs x M x M)
    :param EquilibriumMode mode: estimation of the equilibrium distribution
    :param float min_rcond: smallest acceptable reciprocal condition number of
        the right eigenvectors
    :return: eigen basis
    """
    if counts.shape[0] == 0:
        raise InsufficientDataError('Cannot estimate a basis without sequence pairs')
    S = symmetrized_sum(counts)
    missing = torch.nonzero(S.sum(-1) == 0.0).flatten().tolist()
    if len(missing) > 0:
        raise InsufficientDataError(
            'States {} are never observed in the selected pairs'.format(missing)
        )
    P = row_normalize(S)

    eigenvalues, right = torch.linalg.eig(P)
    if torch.all(eigenvalues.imag == 0.0) and torch.all(right.imag == 0.0):
        eigenvalues, right = eigenvalues.real, right.real

    rcond = 1.0 / torch.linalg.cond(right, p=1).item()
    logger.debug('Reciprocal condition number of eigenvectors: {}'.format(rcond))
    if rcond < min_rcond:
        raise UnstableBasisError(
            'Eigenvector matrix is ill-conditioned (reciprocal condition number'
            ' {:.3g} < {}): the estimate would not be reliable'.format(
                rcond, min_rcond
            )
        )
    left = torch.linalg.inv(right)

    if mode == EquilibriumMode.EIGENVECTOR:
        equilibrium, index = equilibrium_from_eigenvectors(left)
    else:
        equilibrium = equilibrium_from_counts(counts)
        index = torch.argmin(torch.abs(eigenvalues - 1.0)).item()
    return EigenBasis(right, left, eigenvalues, equilibrium, index)
