"""Custom exceptions for estimator computations"""


class EstimatorError(Exception):
    """Base exception for all estimator errors"""

    pass


class InvalidParameterError(EstimatorError, ValueError):
    """Raised when a numeric input is out of range or missing"""

    pass


class MissingInputError(InvalidParameterError):
    """Raised when volatility is omitted and cannot be looked up"""

    pass


class DegenerateGridError(InvalidParameterError):
    """Raised when a geometric grid ratio is too close to 1"""

    pass


class InsufficientDataError(EstimatorError):
    """Raised when there are too few bars for the requested period"""

    pass


class DataIntegrityError(EstimatorError):
    """Raised when a price bar is malformed (e.g. high < low)"""

    pass
