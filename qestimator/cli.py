import argparse
import json
import logging
import sys

from ._version import __version__
from .core.utils import ConfigurationError, EstimationError
from .estimation.estimator import estimate_rate_matrix
from .estimation.options import EquilibriumMode, EstimatorOptions, WeightingMode
from .estimation.resampling import bootstrap_distance, bootstrap_rate_matrices
from .evolution.alignment import SCHEMAS, read_alignment, remove_gap_columns
from .io import format_paml, format_pam, format_plain

logger = logging.getLogger(__name__)


def positive_float(arg):
    """Used by argparse when the argument should be a positive number."""
    try:
        value = float(arg)
    except ValueError:
        raise argparse.ArgumentTypeError('invalid number: {}'.format(arg))
    if value <= 0.0:
        raise argparse.ArgumentTypeError('{} is not a positive number'.format(arg))
    return value


def create_parser():
    parser = argparse.ArgumentParser(
        prog='qestimator',
        description='Estimate an amino acid rate matrix from aligned sequences',
    )
    parser.add_argument(
        'files', nargs='+', metavar='input-file-name', help='alignment files'
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        '-f',
        '--format',
        choices=SCHEMAS,
        default='fasta',
        help="""alignment format [default: %(default)s]""",
    )
    parser.add_argument(
        '-g',
        '--remove-gaps',
        action='store_true',
        help="""remove columns containing gaps""",
    )
    parser.add_argument(
        '-t',
        '--threshold',
        type=positive_float,
        help="""stop when the Frobenius norm of the difference between consecutive
         rate matrices is below threshold [default: 0.001]""",
    )
    parser.add_argument(
        '--eigen-equilibrium',
        action='store_true',
        help="""estimate the equilibrium distribution from the eigenvectors
         instead of residue counts""",
    )
    parser.add_argument(
        '--unweighted',
        action='store_true',
        help="""do not weight the eigenvalue regressions""",
    )
    parser.add_argument(
        '-c',
        '--config',
        type=argparse.FileType('r'),
        help="""JSON file with estimation options""",
    )
    output = parser.add_mutually_exclusive_group()
    output.add_argument(
        '--paml', action='store_true', help="""write the model in PAML format"""
    )
    output.add_argument(
        '--pam',
        type=positive_float,
        nargs='?',
        const=250.0,
        metavar='DISTANCE',
        help="""write a PAM substitution matrix for the FASTA programs at the given
         distance [default: 250]""",
    )
    parser.add_argument(
        '-b',
        '--bootstrap',
        type=int,
        default=0,
        metavar='REPLICATES',
        help="""number of bootstrap replicates used to assess the variability of
         the estimate [default: %(default)d]""",
    )
    parser.add_argument(
        '-s',
        '--seed',
        type=int,
        required=False,
        default=None,
        help="""seed of the bootstrap""",
    )
    parser.add_argument('-v', '--verbose', action='store_true', help="""verbose""")
    return parser


def create_options(arg) -> EstimatorOptions:
    options = EstimatorOptions()
    if arg.config is not None:
        try:
            data = json.load(arg.config)
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                'Cannot parse {}: {}'.format(arg.config.name, e)
            ) from None
        options = EstimatorOptions.from_json_safe(data)
    if arg.threshold is not None:
        options = options._replace(threshold=arg.threshold)
    if arg.eigen_equilibrium:
        options = options._replace(equilibrium=EquilibriumMode.EIGENVECTOR)
    if arg.unweighted:
        options = options._replace(weighting=WeightingMode.UNWEIGHTED)
    return options.validate()


def run(arg) -> str:
    options = create_options(arg)
    alignments = []
    for file_name in arg.files:
        sequences = read_alignment(file_name, arg.format)
        if arg.remove_gaps:
            sequences = remove_gap_columns(sequences)
        alignments.append(sequences)

    result = estimate_rate_matrix(alignments, options)
    logger.info(
        'Estimated from {} pairs, convergence trace: {}'.format(
            result.pair_count, ', '.join('{:.6g}'.format(t) for t in result.trace)
        )
    )

    if arg.bootstrap > 0:
        replicates = bootstrap_rate_matrices(
            alignments, arg.bootstrap, options, arg.seed
        )
        logger.info(
            'Bootstrap: mean distance to the estimate {:.6g} ({} replicates)'.format(
                bootstrap_distance(result.Q, replicates), len(replicates)
            )
        )

    if arg.paml:
        return format_paml(result.Q, result.equilibrium)
    elif arg.pam is not None:
        return format_pam(result.Q, result.equilibrium, arg.pam)
    return format_plain(result.Q, result.equilibrium)


def main(argv=None):
    """Main function to run qestimator."""
    parser = create_parser()
    arg = parser.parse_args(argv)
    if arg.bootstrap < 0:
        parser.error('the number of bootstrap replicates should be positive')

    logging.basicConfig(
        format='%(levelname)s: %(message)s',
        level=logging.INFO if arg.verbose else logging.WARNING,
    )

    try:
        output = run(arg)
    except (ConfigurationError, EstimationError, ValueError, OSError) as error:
        logging.error(error)
        return 1
    sys.stdout.write(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
