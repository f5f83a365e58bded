"""
Exception types raised by the greenwave package
"""


class GreenwaveError(Exception):
    """Base class for all greenwave errors."""
    pass


class ConfigurationError(GreenwaveError):
    """Raised when run options are invalid, before any search starts."""
    pass


class TrafficDataError(GreenwaveError):
    """Raised when a traffic input table is malformed."""
    pass


class CandidateShapeError(GreenwaveError):
    """Raised when a phase matrix does not match the expected shape."""
    pass
