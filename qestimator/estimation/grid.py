from __future__ import annotations

import torch

from ..core.serializable import JSONSerializable
from ..core.utils import ConfigurationError


class DistanceGrid(JSONSerializable):
    r"""Evenly spaced evolutionary distances, in PAM units, used to integrate
    over the distance between the two sequences of a pair.

    The grid is :math:`d_k = start + k \cdot step` for every :math:`d_k \leq
    stop`. Integrals are computed with the trapezoidal rule.

    :param float start: first distance (strictly positive)
    :param float step: spacing between consecutive distances
    :param float stop: largest distance allowed in the grid
    """

    def __init__(self, start: float = 1.0, step: float = 5.0, stop: float = 400.0):
        if start <= 0.0:
            raise ConfigurationError('Grid start should be positive: {}'.format(start))
        if step <= 0.0:
            raise ConfigurationError('Grid step should be positive: {}'.format(step))
        if stop < start + step:
            raise ConfigurationError(
                'Grid should contain at least two distances (start={}, step={},'
                ' stop={})'.format(start, step, stop)
            )
        self.start = float(start)
        self.step = float(step)
        self.stop = float(stop)
        count = int((self.stop - self.start) // self.step) + 1
        self._distances = self.start + self.step * torch.arange(
            count, dtype=torch.float64
        )
        self._weights = torch.full((count,), self.step, dtype=torch.float64)
        self._weights[0] /= 2.0
        self._weights[-1] /= 2.0

    @property
    def distances(self) -> torch.Tensor:
        return self._distances

    @property
    def weights(self) -> torch.Tensor:
        """Trapezoidal weights: the step size, halved at both ends."""
        return self._weights

    def __len__(self) -> int:
        return self._distances.shape[0]

    def integrate(self, values: torch.Tensor) -> torch.Tensor:
        """Integrate values sampled on the grid along the last dimension."""
        return torch.sum(values * self._weights, -1)

    def truncate(self, max_distance: float) -> torch.Tensor:
        """Mask of the distances smaller or equal to max_distance."""
        return self._distances <= max_distance

    def __eq__(self, other) -> bool:
        return isinstance(other, DistanceGrid) and (
            (self.start, self.step, self.stop) == (other.start, other.step, other.stop)
        )

    def __repr__(self) -> str:
        return 'DistanceGrid(start={}, step={}, stop={})'.format(
            self.start, self.step, self.stop
        )

    @classmethod
    def from_json(cls, data):
        allowed = {'start', 'step', 'stop'}
        unknown = set(data.keys()).difference(allowed)
        if len(unknown) != 0:
            raise ConfigurationError(
                'Key not allowed in grid: {}'.format(', '.join(sorted(unknown)))
            )
        return cls(
            float(data.get('start', 1.0)),
            float(data.get('step', 5.0)),
            float(data.get('stop', 400.0)),
        )
