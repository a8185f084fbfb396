"""Engine exceptions.

Every error raised by the projection and change-attribution engines is an
input-validation failure detected before any computation runs. They all
derive from ``ValueError`` so callers that only care about bad input can
catch that, while the HTTP layer maps :class:`EngineError` to a 400.
"""


class EngineError(ValueError):
    """Base class for engine input-validation failures."""


class InvalidAssumptions(EngineError):
    """Projection assumptions are non-finite or out of domain."""


class InvalidMilestone(EngineError):
    """Milestone target is impossible to track (e.g. negative)."""


class InvalidPeriodFormat(EngineError):
    """A calendar-month token does not match ``YYYY-MM``."""
