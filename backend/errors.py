"""Error types raised by the scheduling engine and the practice layer"""


class TimesTablesError(Exception):
    """Base class for all times tables errors"""


class ValidationError(TimesTablesError, ValueError):
    """Input rejected before it reaches the update rule (bad factor, bad latency)"""


class NotFoundError(TimesTablesError, LookupError):
    """A learner or fact state the caller expected to exist is missing"""
