class AnalyticsError(Exception):
    """Base class for faults raised by the aggregation engine."""


class InputValidationError(AnalyticsError, ValueError):
    """A required report parameter is missing, blank or out of range."""


class ComputationFault(AnalyticsError):
    """The record store failed while a report was reading it.

    The underlying exception is chained as ``__cause__``.
    """
