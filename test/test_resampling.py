import logging

import pytest
import torch

from qestimator.core.utils import InsufficientDataError
from qestimator.estimation.resampling import (
    bootstrap_distance,
    bootstrap_rate_matrices,
    resample_columns,
)
from qestimator.evolution.alignment import Sequence


def test_resample_columns():
    sequences = [Sequence('a', 'ARNDCQEGHI'), Sequence('b', 'arndcqeghi')]
    generator = torch.Generator().manual_seed(5)
    resampled = resample_columns(sequences, generator)
    assert [s.taxon for s in resampled] == ['a', 'b']
    assert len(resampled[0].sequence) == 10
    # columns are kept together
    assert resampled[0].sequence.lower() == resampled[1].sequence
    assert set(resampled[0].sequence) <= set('ARNDCQEGHI')


def test_resample_columns_seeded():
    sequences = [Sequence('a', 'ARNDCQEGHI'), Sequence('b', 'KLMFPSTWYV')]
    first = resample_columns(sequences, torch.Generator().manual_seed(1))
    second = resample_columns(sequences, torch.Generator().manual_seed(1))
    assert first == second


def test_bootstrap_rate_matrices(simulated_alignments):
    alignments = simulated_alignments(40, 200, seed=3)
    matrices = bootstrap_rate_matrices(alignments, 2, seed=1)
    assert len(matrices) == 2
    for Q in matrices:
        assert Q.shape == (20, 20)
        assert torch.allclose(Q.sum(-1), torch.zeros(20, dtype=torch.float64))
    assert torch.equal(matrices[0], bootstrap_rate_matrices(alignments, 1, seed=1)[0])


def test_bootstrap_rate_matrices_failure(caplog):
    alignments = [[Sequence('a', 'AAAA'), Sequence('b', 'AAAA')]]
    with caplog.at_level(logging.WARNING):
        with pytest.raises(InsufficientDataError):
            bootstrap_rate_matrices(alignments, 2, seed=1)
    assert 'Skipping bootstrap replicate' in caplog.text


def test_bootstrap_distance():
    reference = torch.zeros((2, 2))
    replicates = [torch.tensor([[3.0, 0.0], [0.0, 4.0]]), torch.ones((2, 2))]
    assert bootstrap_distance(reference, replicates) == pytest.approx(3.5)
