"""
Domain exceptions raised by the service layer.

Routers translate these into HTTP responses; messages are meant to be shown
to the person at the screen as-is.
"""


class OrderValidationError(ValueError):
    """A required checkout field is missing. Nothing was written."""


class TableNotFoundError(OrderValidationError):
    """The dine-in table number does not exist."""


class OrderNotFoundError(LookupError):
    """No order with the given id."""


class OrderStateError(Exception):
    """The order's current status does not allow the requested transition."""
