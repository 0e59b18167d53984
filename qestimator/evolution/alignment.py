from __future__ import annotations

import collections
import logging

import dendropy

logger = logging.getLogger(__name__)

Sequence = collections.namedtuple('Sequence', ['taxon', 'sequence'])

GAP_SYMBOLS = '-.'

SCHEMAS = ('fasta', 'stockholm', 'phylip', 'nexus')


def read_fasta_sequences(filename: str) -> list[Sequence]:
    sequences = {}
    taxon = None
    with open(filename, 'r') as fp:
        for line in fp:
            line = line.strip()
            if line.startswith('>'):
                taxon = line[1:].split()[0]
                if taxon in sequences:
                    raise ValueError(
                        'Duplicate sequence name {} in {}'.format(taxon, filename)
                    )
                sequences[taxon] = ''
            elif line:
                if taxon is None:
                    raise ValueError('{} is not a FASTA file'.format(filename))
                sequences[taxon] += line
    return [Sequence(taxon, sequence) for taxon, sequence in sequences.items()]


def read_stockholm_sequences(filename: str) -> list[Sequence]:
    """Read a STOCKHOLM alignment.

    Sequences may be interleaved over several blocks, markup lines starting
    with # are ignored.
    """
    sequences = {}
    with open(filename, 'r') as fp:
        header = next(fp, '')
        if not header.startswith('# STOCKHOLM'):
            raise ValueError('{} is not a STOCKHOLM file'.format(filename))
        for line in fp:
            line = line.strip()
            if line == '//':
                break
            if not line or line.startswith('#'):
                continue
            taxon, sequence = line.split(maxsplit=1)
            sequence = sequence.replace(' ', '')
            sequences[taxon] = sequences.get(taxon, '') + sequence
    return [Sequence(taxon, sequence) for taxon, sequence in sequences.items()]


def read_dendropy_sequences(filename: str, schema: str) -> list[Sequence]:
    seqs_args = dict(schema=schema)
    if schema == 'nexus':
        seqs_args['preserve_underscores'] = True
    matrix = dendropy.ProteinCharacterMatrix.get(path=filename, **seqs_args)
    return [
        Sequence(taxon.label, matrix[taxon].symbols_as_string())
        for taxon in matrix.taxon_namespace
    ]


def read_alignment(filename: str, schema: str = 'fasta') -> list[Sequence]:
    """Read an alignment file.

    :param str filename: path to the alignment
    :param str schema: one of fasta, stockholm, phylip or nexus
    :return: sequences in file order
    """
    if schema == 'fasta':
        sequences = read_fasta_sequences(filename)
    elif schema == 'stockholm':
        sequences = read_stockholm_sequences(filename)
    elif schema in ('phylip', 'nexus'):
        sequences = read_dendropy_sequences(filename, schema)
    else:
        raise ValueError(
            'Unknown alignment format {} (choose from {})'.format(
                schema, ', '.join(SCHEMAS)
            )
        )
    check_sequences(sequences)
    logger.info('Read {} sequences from {}'.format(len(sequences), filename))
    return sequences


def check_sequences(sequences: list[Sequence]) -> None:
    if len(sequences) == 0:
        raise ValueError('Alignment does not contain any sequence')
    taxa = [sequence.taxon for sequence in sequences]
    if len(set(taxa)) != len(taxa):
        raise ValueError('Sequence names are not unique')
    length = len(sequences[0].sequence)
    for sequence in sequences:
        if len(sequence.sequence) != length:
            raise ValueError(
                'Sequence {} has length {} (expected {})'.format(
                    sequence.taxon, len(sequence.sequence), length
                )
            )


def remove_gap_columns(sequences: list[Sequence]) -> list[Sequence]:
    """Remove every column containing a gap in at least one sequence."""
    columns = [
        column
        for column in zip(*[sequence.sequence for sequence in sequences])
        if not any(residue in GAP_SYMBOLS for residue in column)
    ]
    if len(columns) == 0:
        logger.warning('All columns contain gaps')
        return [Sequence(sequence.taxon, '') for sequence in sequences]
    residues = [''.join(row) for row in zip(*columns)]
    return [
        Sequence(sequence.taxon, residue)
        for sequence, residue in zip(sequences, residues)
    ]
