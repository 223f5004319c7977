"""Exception hierarchy for lokilog.

Every failure a caller can observe derives from LokiLogError, so host
applications can guard logging calls with a single except clause.
"""


class LokiLogError(Exception):
    """Base class for all lokilog errors."""


class SinkInitError(LokiLogError):
    """The local structured sink could not be created."""


class DeliveryError(LokiLogError):
    """A log entry could not be delivered to the aggregation service."""


class SerializationError(DeliveryError):
    """The shipping envelope could not be encoded."""


class RequestBuildError(DeliveryError):
    """The HTTP request could not be constructed (e.g. malformed URL)."""


class TransportError(DeliveryError):
    """The HTTP request failed at the network level."""


class DeliveryTimeoutError(TransportError):
    """The aggregation service did not respond within the timeout."""


class DeliveryRejectedError(DeliveryError):
    """The aggregation service answered with a non-accepted status code."""

    def __init__(self, status_code: int, reason: str = "") -> None:
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"unexpected status code: {status_code}")
