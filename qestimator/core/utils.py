class ConfigurationError(Exception):
    ...


class EstimationError(Exception):
    """Fatal condition raised when the data cannot support an estimate."""


class UnstableBasisError(EstimationError):
    ...


class EquilibriumError(EstimationError):
    ...


class InsufficientDataError(EstimationError):
    ...
