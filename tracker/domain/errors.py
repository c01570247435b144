class AggregationError(Exception):
    """Base class for engine failures."""


class InvalidInput(AggregationError):
    """Rejected before any write is attempted. Never retried."""


class RetryableConflict(AggregationError):
    """Transaction kept conflicting after the bounded number of attempts."""
