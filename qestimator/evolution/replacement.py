"""Replacement counts between aligned sequences and selection of disjoint
pairs."""

from __future__ import annotations

import collections
import logging

import torch

from ..core.utils import InsufficientDataError
from .alignment import Sequence
from .datatype import AminoAcidDataType, DataType

logger = logging.getLogger(__name__)

ReplacementPair = collections.namedtuple(
    'ReplacementPair', ['first', 'second', 'identity', 'counts']
)


def count_replacements(
    sequence1: str, sequence2: str, data_type: DataType = None
) -> tuple[torch.Tensor, float]:
    r"""Count residue replacements between two aligned sequences.

    Cell :math:`(i, j)` of the count matrix is the number of columns with
    state :math:`i` in the first sequence and state :math:`j` in the second.
    Columns with a symbol outside the alphabet do not fit in the matrix and are
    not counted, but every column, gaps included, contributes to the identity.

    :param str sequence1: first sequence
    :param str sequence2: second sequence
    :param DataType data_type: alphabet (default: amino acids)
    :return: count matrix and percentage of identical columns
    """
    if len(sequence1) != len(sequence2):
        raise ValueError(
            'Sequences have different lengths ({} and {})'.format(
                len(sequence1), len(sequence2)
            )
        )
    if len(sequence1) == 0:
        raise ValueError('Cannot count replacements between empty sequences')
    if data_type is None:
        data_type = AminoAcidDataType()
    state_count = data_type.state_count

    first = data_type.encode(sequence1.upper())
    second = data_type.encode(sequence2.upper())
    mask = (first < state_count) & (second < state_count)
    counts = (
        torch.bincount(
            first[mask] * state_count + second[mask], minlength=state_count**2
        )
        .reshape(state_count, state_count)
        .to(dtype=torch.float64)
    )
    identical = sum(a == b for a, b in zip(sequence1.upper(), sequence2.upper()))
    identity = 100.0 * identical / len(sequence1)
    return counts, identity


def compute_pairs(
    sequences: list[Sequence], data_type: DataType = None
) -> list[ReplacementPair]:
    """Count replacements for every pair of sequences."""
    pairs = []
    for i in range(len(sequences)):
        for j in range(i + 1, len(sequences)):
            counts, identity = count_replacements(
                sequences[i].sequence, sequences[j].sequence, data_type
            )
            pairs.append(ReplacementPair(i, j, identity, counts))
    return pairs


def select_pairs(
    pairs: list[ReplacementPair],
) -> tuple[list[ReplacementPair], int]:
    """Greedily pick pairs that do not share any sequence.

    Pairs are visited in decreasing order of identity (ties keep their input
    order) and a pair is kept if none of its sequences was used before. Pairs
    of identical sequences carry no information about replacements and are
    discarded.

    :param pairs: candidate pairs
    :return: selected pairs in acceptance order and number of pairs discarded
        because they are 100% identical
    """
    available = set()
    for pair in pairs:
        available.update((pair.first, pair.second))

    selected = []
    too_similar = 0
    for pair in sorted(pairs, key=lambda x: -x.identity):
        if pair.identity >= 100.0:
            too_similar += 1
        elif pair.first in available and pair.second in available:
            selected.append(pair)
            available.discard(pair.first)
            available.discard(pair.second)
    return selected, too_similar


def collect_pairs(
    alignments: list[list[Sequence]], data_type: DataType = None
) -> list[ReplacementPair]:
    """Select disjoint pairs in each alignment and pool them.

    :param alignments: list of alignments
    :param DataType data_type: alphabet (default: amino acids)
    :return: selected pairs of every alignment
    """
    selected = []
    for index, sequences in enumerate(alignments):
        if len(sequences) < 2:
            raise InsufficientDataError(
                'Alignment {} contains {} sequence(s), at least 2 are needed'.format(
                    index + 1, len(sequences)
                )
            )
        pairs, too_similar = select_pairs(compute_pairs(sequences, data_type))
        if too_similar > 0:
            logger.info(
                'Alignment {}: {} pair(s) discarded for being 100% identical'.format(
                    index + 1, too_similar
                )
            )
        logger.info(
            'Alignment {}: selected {} pair(s) out of {} sequences'.format(
                index + 1, len(pairs), len(sequences)
            )
        )
        selected.extend(pairs)
    if len(selected) == 0:
        raise InsufficientDataError(
            'No usable sequence pair: sequences are too similar to gather'
            ' replacement statistics'
        )
    return selected
