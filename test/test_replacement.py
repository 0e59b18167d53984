import pytest
import torch

from qestimator.core.utils import InsufficientDataError
from qestimator.evolution.alignment import Sequence
from qestimator.evolution.datatype import AminoAcidDataType
from qestimator.evolution.replacement import (
    ReplacementPair,
    collect_pairs,
    compute_pairs,
    count_replacements,
    select_pairs,
)


def index(symbol):
    return AminoAcidDataType().encoding(symbol)


def test_count_replacements():
    counts, identity = count_replacements('ARND', 'ARNC')
    assert identity == 75.0
    assert counts.shape == (20, 20)
    assert counts.sum() == 4
    for symbol in 'ARN':
        assert counts[index(symbol), index(symbol)] == 1
    assert counts[index('D'), index('C')] == 1
    assert counts[index('C'), index('D')] == 0


def test_count_replacements_case_insensitive():
    counts, identity = count_replacements('arnd', 'ARNd')
    assert identity == 100.0
    assert torch.equal(counts, count_replacements('ARND', 'ARND')[0])


def test_count_replacements_unknown_symbols():
    counts, identity = count_replacements('AR-X', 'AR-D')
    assert counts.sum() == 2
    assert identity == 75.0


def test_count_replacements_identical_with_gaps():
    counts, identity = count_replacements('AR-D', 'ar-d')
    assert identity == 100.0
    assert counts.sum() == 3


def test_count_replacements_different_lengths():
    with pytest.raises(ValueError):
        count_replacements('ARND', 'ARN')
    with pytest.raises(ValueError):
        count_replacements('', '')


def test_compute_pairs():
    sequences = [Sequence('a', 'ARND'), Sequence('b', 'ARNC'), Sequence('c', 'AAAA')]
    pairs = compute_pairs(sequences)
    assert [(pair.first, pair.second) for pair in pairs] == [(0, 1), (0, 2), (1, 2)]
    assert [pair.identity for pair in pairs] == [75.0, 25.0, 25.0]


def test_select_pairs_two_clusters():
    sequences = [
        Sequence('s0', 'ARNDCQEGHI'),
        Sequence('s1', 'ARNDCQEGHV'),
        Sequence('s2', 'KLMFPSTWYV'),
        Sequence('s3', 'KLMFRRRRRR'),
    ]
    selected, too_similar = select_pairs(compute_pairs(sequences))
    assert too_similar == 0
    assert [(pair.first, pair.second) for pair in selected] == [(0, 1), (2, 3)]
    assert [pair.identity for pair in selected] == [90.0, 40.0]


def test_select_pairs_identical_sequences():
    sequences = [Sequence('a', 'AAAA'), Sequence('b', 'AAAA')]
    selected, too_similar = select_pairs(compute_pairs(sequences))
    assert selected == []
    assert too_similar == 1


def test_select_pairs_identical_gapped_sequences():
    sequences = [Sequence('a', 'ARND-'), Sequence('b', 'ARND-')]
    selected, too_similar = select_pairs(compute_pairs(sequences))
    assert selected == []
    assert too_similar == 1


def test_select_pairs_skips_identical_pair_only():
    sequences = [Sequence('a', 'ARND'), Sequence('b', 'ARND'), Sequence('c', 'ARCC')]
    selected, too_similar = select_pairs(compute_pairs(sequences))
    assert too_similar == 1
    assert [(pair.first, pair.second) for pair in selected] == [(0, 2)]


@pytest.mark.parametrize('seed', [1, 2, 3, 4])
def test_select_pairs_properties(seed):
    generator = torch.Generator().manual_seed(seed)
    count = 11
    pairs = []
    for i in range(count):
        for j in range(i + 1, count):
            identity = torch.randint(0, 6, (1,), generator=generator).item() * 20.0
            pairs.append(ReplacementPair(i, j, identity, None))
    selected, too_similar = select_pairs(pairs)

    assert too_similar == sum(pair.identity == 100.0 for pair in pairs)
    assert len(selected) <= count // 2
    used = [index for pair in selected for index in (pair.first, pair.second)]
    assert len(used) == len(set(used))
    assert all(pair.identity < 100.0 for pair in selected)
    identities = [pair.identity for pair in selected]
    assert identities == sorted(identities, reverse=True)


def test_collect_pairs():
    alignments = [
        [Sequence('a', 'ARND'), Sequence('b', 'ARNC')],
        [Sequence('c', 'AAAA'), Sequence('d', 'AAAA')],
        [Sequence('e', 'CCCC'), Sequence('f', 'CCCA'), Sequence('g', 'CCAA')],
    ]
    selected = collect_pairs(alignments)
    assert [pair.identity for pair in selected] == [75.0, 75.0]


def test_collect_pairs_insufficient_data():
    with pytest.raises(InsufficientDataError):
        collect_pairs([[Sequence('a', 'AAAA'), Sequence('b', 'AAAA')]])
    with pytest.raises(InsufficientDataError):
        collect_pairs([[Sequence('a', 'ARND')]])
