from __future__ import annotations

import logging

import torch
import torch.linalg

from ..core.utils import EstimationError
from ..evolution.alignment import Sequence
from ..evolution.datatype import DataType
from .estimator import estimate_rate_matrix
from .options import EstimatorOptions

logger = logging.getLogger(__name__)


def resample_columns(
    sequences: list[Sequence], generator: torch.Generator = None
) -> list[Sequence]:
    """Draw alignment columns with replacement."""
    length = len(sequences[0].sequence)
    columns = torch.randint(length, (length,), generator=generator).tolist()
    return [
        Sequence(
            sequence.taxon, ''.join(sequence.sequence[column] for column in columns)
        )
        for sequence in sequences
    ]


def bootstrap_rate_matrices(
    alignments: list[list[Sequence]],
    replicates: int,
    options: EstimatorOptions = None,
    seed: int = None,
    data_type: DataType = None,
) -> list[torch.Tensor]:
    """Estimate rate matrices on bootstrap replicates of the alignments.

    Replicates for which the estimation fails are skipped.

    :param alignments: alignments
    :param int replicates: number of replicates
    :param EstimatorOptions options: options
    :param int seed: seed of the random number generator
    :param DataType data_type: alphabet (default: amino acids)
    :return: rate matrices of the successful replicates
    """
    generator = torch.Generator()
    if seed is not None:
        generator.manual_seed(seed)
    else:
        generator.seed()

    matrices = []
    error = None
    for replicate in range(replicates):
        resampled = [resample_columns(sequences, generator) for sequences in alignments]
        try:
            result = estimate_rate_matrix(resampled, options, data_type)
        except EstimationError as e:
            logger.warning(
                'Skipping bootstrap replicate {}: {}'.format(replicate + 1, e)
            )
            error = e
            continue
        matrices.append(result.Q)
    if len(matrices) == 0 and error is not None:
        raise error
    return matrices


def bootstrap_distance(
    reference: torch.Tensor, replicates: list[torch.Tensor]
) -> float:
    """Mean Frobenius distance between replicate rate matrices and a reference
    estimate."""
    distances = torch.linalg.matrix_norm(torch.stack(replicates) - reference, 'fro')
    return distances.mean().item()
