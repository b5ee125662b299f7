"""Error taxonomy for trip planning.

Every fatal condition raised while planning derives from ``PlanningError``.
The assembler turns any of them into a failed ``TripSummary``; naming
failures are not errors and never reach this module.
"""


class PlanningError(Exception):
    """Base class for errors that abort a planning request."""


class InputError(PlanningError):
    """The planning request is missing or has invalid parameters."""


class ProviderError(PlanningError):
    """The routing or geocoding provider returned a non-success answer."""


class MalformedRouteError(PlanningError):
    """The route violates the provider contract (empty leg, bad distance)."""
