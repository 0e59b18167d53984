import pytest

from qestimator.evolution.alignment import (
    Sequence,
    check_sequences,
    read_alignment,
    remove_gap_columns,
)


def test_read_fasta(tmp_path):
    path = tmp_path / 'seqs.fa'
    path.write_text('>seq1 description\nARND\nCQ\n>seq2\nARNDCE\n')
    sequences = read_alignment(str(path), 'fasta')
    assert sequences == [Sequence('seq1', 'ARNDCQ'), Sequence('seq2', 'ARNDCE')]


def test_read_stockholm(tmp_path):
    path = tmp_path / 'seqs.sto'
    path.write_text(
        '# STOCKHOLM 1.0\n#=GF ID test\n\nseq1 ARN\nseq2 ARD\n\nseq1 DC\nseq2 DC\n//\n'
    )
    sequences = read_alignment(str(path), 'stockholm')
    assert sequences == [Sequence('seq1', 'ARNDC'), Sequence('seq2', 'ARDDC')]


def test_read_phylip(tmp_path):
    path = tmp_path / 'seqs.phy'
    path.write_text('3 5\nseq1 ARNDC\nseq2 ARNDD\nseq3 ARNCC\n')
    sequences = read_alignment(str(path), 'phylip')
    assert [s.taxon for s in sequences] == ['seq1', 'seq2', 'seq3']
    assert [s.sequence for s in sequences] == ['ARNDC', 'ARNDD', 'ARNCC']


def test_read_nexus(tmp_path):
    path = tmp_path / 'seqs.nex'
    path.write_text(
        '#NEXUS\nBEGIN DATA;\nDIMENSIONS NTAX=2 NCHAR=4;\n'
        'FORMAT DATATYPE=PROTEIN GAP=- MISSING=?;\nMATRIX\n'
        'seq_1 ARND\nseq_2 AR-D\n;\nEND;\n'
    )
    sequences = read_alignment(str(path), 'nexus')
    assert sequences == [Sequence('seq_1', 'ARND'), Sequence('seq_2', 'AR-D')]


def test_read_unknown_format(tmp_path):
    path = tmp_path / 'seqs.fa'
    path.write_text('>seq1\nARND\n')
    with pytest.raises(ValueError):
        read_alignment(str(path), 'clustal')


def test_check_sequences():
    with pytest.raises(ValueError):
        check_sequences([])
    with pytest.raises(ValueError):
        check_sequences([Sequence('a', 'ARN'), Sequence('b', 'AR')])
    with pytest.raises(ValueError):
        check_sequences([Sequence('a', 'ARN'), Sequence('a', 'ARD')])
    check_sequences([Sequence('a', 'ARN'), Sequence('b', 'ARD')])


def test_remove_gap_columns():
    sequences = [Sequence('a', 'A-RN.D'), Sequence('b', 'AQR-CD')]
    assert remove_gap_columns(sequences) == [Sequence('a', 'ARD'), Sequence('b', 'ARD')]


def test_remove_gap_columns_all_gapped():
    sequences = [Sequence('a', '-A'), Sequence('b', 'R-')]
    assert remove_gap_columns(sequences) == [Sequence('a', ''), Sequence('b', '')]
