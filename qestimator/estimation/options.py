from __future__ import annotations

from enum import Enum
from typing import NamedTuple

from ..core.serializable import JSONSerializable
from ..core.utils import ConfigurationError
from .grid import DistanceGrid


class EquilibriumMode(Enum):
    """How the equilibrium distribution is estimated.

    - COUNTS: residue counts of the selected pairs plus one pseudo-count.
    - EIGENVECTOR: normalized left eigenvector of the stationary state.
    """

    COUNTS = 'counts'
    EIGENVECTOR = 'eigenvector'


class WeightingMode(Enum):
    """Weighting of the data points in the eigenvalue regressions."""

    POSTERIOR = 'posterior'
    UNWEIGHTED = 'unweighted'


class _Options(NamedTuple):
    threshold: float = 0.001
    max_iterations: int = 10
    grid: DistanceGrid = DistanceGrid()
    equilibrium: EquilibriumMode = EquilibriumMode.COUNTS
    weighting: WeightingMode = WeightingMode.POSTERIOR
    bootstrap_divergence: float = 100.0
    divergence: float = 200.0
    min_regression_points: int = 5
    min_rcond: float = 0.01


class EstimatorOptions(_Options, JSONSerializable):
    """Immutable options of the rate matrix estimation.

    :param float threshold: the iterations stop when the Frobenius norm of the
        difference between consecutive rate matrices is below threshold
    :param int max_iterations: maximum number of iterations after the bootstrap
        pass
    :param DistanceGrid grid: distances used for numerical integration
    :param EquilibriumMode equilibrium: estimation of the equilibrium
        distribution
    :param WeightingMode weighting: weighting of the eigenvalue regressions
    :param float bootstrap_divergence: largest distance (PAM) used in the
        regressions of the Jukes-Cantor bootstrap pass
    :param float divergence: largest distance (PAM) used in the regressions of
        the following iterations
    :param int min_regression_points: minimum number of data points for each
        eigenvalue regression
    :param float min_rcond: minimum reciprocal condition number of the
        eigenvector matrix
    """

    __slots__ = ()

    def validate(self) -> EstimatorOptions:
        if not self.threshold > 0.0:
            raise ConfigurationError(
                'threshold should be positive: {}'.format(self.threshold)
            )
        if self.max_iterations < 1:
            raise ConfigurationError(
                'max_iterations should be at least 1: {}'.format(self.max_iterations)
            )
        if self.bootstrap_divergence <= 0.0 or self.divergence <= 0.0:
            raise ConfigurationError('divergence cutoffs should be positive')
        if not isinstance(self.equilibrium, EquilibriumMode):
            raise ConfigurationError(
                'Unknown equilibrium mode: {}'.format(self.equilibrium)
            )
        if not isinstance(self.weighting, WeightingMode):
            raise ConfigurationError(
                'Unknown weighting mode: {}'.format(self.weighting)
            )
        return self

    @classmethod
    def from_json(cls, data):
        unknown = set(data.keys()).difference(cls._fields)
        if len(unknown) != 0:
            raise ConfigurationError(
                'Key not allowed: {}'.format(', '.join(sorted(unknown)))
            )
        options = {}
        for key in ('threshold', 'bootstrap_divergence', 'divergence', 'min_rcond'):
            if key in data:
                options[key] = float(data[key])
        for key in ('max_iterations', 'min_regression_points'):
            if key in data:
                options[key] = int(data[key])
        if 'grid' in data:
            options['grid'] = DistanceGrid.from_json_safe(data['grid'])
        try:
            if 'equilibrium' in data:
                options['equilibrium'] = EquilibriumMode(data['equilibrium'])
            if 'weighting' in data:
                options['weighting'] = WeightingMode(data['weighting'])
        except ValueError as e:
            raise ConfigurationError(str(e)) from None
        return cls(**options).validate()
