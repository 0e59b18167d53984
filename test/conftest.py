import pytest
import torch

from qestimator.evolution.alignment import Sequence
from qestimator.evolution.datatype import AminoAcidDataType


def make_reversible_model(seed, state_count=20):
    generator = torch.Generator().manual_seed(seed)
    exchangeabilities = 0.5 + 1.5 * torch.rand(
        (state_count, state_count), generator=generator, dtype=torch.float64
    )
    exchangeabilities = (exchangeabilities + exchangeabilities.T) / 2.0
    frequencies = 0.5 + torch.rand(
        state_count, generator=generator, dtype=torch.float64
    )
    frequencies /= frequencies.sum()
    Q = exchangeabilities * frequencies
    Q[range(state_count), range(state_count)] = 0.0
    Q[range(state_count), range(state_count)] = -Q.sum(-1)
    Q /= -torch.sum(Q.diagonal() * frequencies) * 100.0
    return Q, frequencies


def make_expected_counts(Q, frequencies, distance, length):
    P = torch.linalg.matrix_exp(Q * distance)
    return length * frequencies.unsqueeze(-1) * P


def simulate_pair(Q, frequencies, distance, length, generator):
    states = AminoAcidDataType().states
    P = torch.linalg.matrix_exp(Q * distance)
    ancestor = torch.multinomial(frequencies, length, True, generator=generator)
    descendant = torch.multinomial(P[ancestor], 1, generator=generator).squeeze(-1)
    return [
        Sequence('a', ''.join(states[i] for i in ancestor.tolist())),
        Sequence('b', ''.join(states[i] for i in descendant.tolist())),
    ]


@pytest.fixture
def reversible_model():
    return make_reversible_model(1)


@pytest.fixture
def expected_counts():
    return make_expected_counts


@pytest.fixture
def simulated_alignments():
    def simulate(pair_count, length, seed=7):
        Q, frequencies = make_reversible_model(1)
        generator = torch.Generator().manual_seed(seed)
        distances = 10.0 + 90.0 * torch.rand(
            pair_count, generator=generator, dtype=torch.float64
        )
        return [
            simulate_pair(Q, frequencies, d.item(), length, generator)
            for d in distances
        ]

    return simulate


@pytest.fixture
def grid_distance_counts(reversible_model, expected_counts):
    """Expected count matrices of pairs at distances lying on the default grid."""
    Q, frequencies = reversible_model
    distances = (6.0, 16.0, 26.0, 41.0, 61.0, 86.0)
    return torch.stack([expected_counts(Q, frequencies, d, 1e5) for d in distances])
