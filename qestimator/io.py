"""Text formats of an estimated rate matrix."""

from __future__ import annotations

import torch
import torch.linalg

from .evolution.datatype import AminoAcidDataType


def _format_row(values, fmt='{:.8g}') -> str:
    return ' '.join(fmt.format(value) for value in values)


def format_plain(Q: torch.Tensor, equilibrium: torch.Tensor) -> str:
    """Rate matrix and equilibrium distribution as matrix literals."""
    rows = Q.tolist()
    lines = ['Q = [']
    for i, row in enumerate(rows):
        lines.append('  ' + _format_row(row) + (';' if i < len(rows) - 1 else ''))
    lines.append('];')
    lines.append('eq = [' + _format_row(equilibrium.tolist()) + '];')
    return '\n'.join(lines) + '\n'


def exchangeabilities(Q: torch.Tensor, equilibrium: torch.Tensor) -> torch.Tensor:
    r"""Compute :math:`R = Q \mathrm{diag}(1/\pi)`."""
    return Q / equilibrium.unsqueeze(-2)


def format_paml(Q: torch.Tensor, equilibrium: torch.Tensor) -> str:
    """Rate matrix in the format of PAML's amino acid model files.

    The strictly lower triangle of the exchangeability matrix is written row by
    row, followed by the equilibrium distribution.
    """
    R = exchangeabilities(Q, equilibrium).tolist()
    lines = [_format_row(R[i][:i], '{:.6f}') for i in range(1, len(R))]
    lines.append('')
    lines.append(_format_row(equilibrium.tolist(), '{:.6f}'))
    return '\n'.join(lines) + '\n'


def pam_log_odds(
    Q: torch.Tensor, equilibrium: torch.Tensor, distance: float = 250.0
) -> torch.Tensor:
    r"""Log-odds scores :math:`\mathrm{round}(10 \log(P_{ij} / \pi_j))` with
    :math:`P = e^{Qd}`."""
    P = torch.linalg.matrix_exp(Q * distance)
    return torch.round(10.0 * torch.log(P / equilibrium.unsqueeze(-2))).to(
        dtype=torch.long
    )


def format_pam(
    Q: torch.Tensor,
    equilibrium: torch.Tensor,
    distance: float = 250.0,
    states: tuple[str, ...] = None,
) -> str:
    """Substitution matrix at a PAM distance, as read by the FASTA programs."""
    if states is None:
        states = AminoAcidDataType().states
    M = pam_log_odds(Q, equilibrium, distance).tolist()
    lines = [
        '# PAM-{:g} log-odds matrix (scores in 1/10 natural log units)'.format(
            distance
        ),
        '  ' + ''.join('{:>4}'.format(state) for state in states),
    ]
    for state, row in zip(states, M):
        lines.append('{:<2}'.format(state) + ''.join('{:>4d}'.format(v) for v in row))
    return '\n'.join(lines) + '\n'
