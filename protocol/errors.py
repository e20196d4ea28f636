"""Error taxonomy for the broker layer.

Connection and channel errors are fatal to the whole run, publish and ack
errors are fatal to the session that raised them, and decode errors only
concern the single delivery being processed.
"""


class BrokerError(Exception):
    """Base class for every failure raised by the broker layer."""


class BrokerConnectionError(BrokerError):
    """The broker could not be reached or refused the connection."""


class ChannelError(BrokerError):
    """A channel could not be opened (or put in confirm mode) on a live connection."""


class SessionStateError(BrokerError):
    """A session was used outside of its open lifetime."""


class PublishError(BrokerError):
    """The transport failed while a message was being published."""


class DeliveryDecodeError(BrokerError):
    """A delivery payload is not valid UTF-8."""

    def __init__(self, delivery_tag, reason):
        super().__init__(f"Delivery {delivery_tag} could not be decoded: {reason}")
        self.delivery_tag = delivery_tag
        self.reason = reason


class AckError(BrokerError):
    """A delivery could not be acknowledged."""

    def __init__(self, delivery_tag, reason):
        super().__init__(f"Delivery {delivery_tag} could not be acknowledged: {reason}")
        self.delivery_tag = delivery_tag
        self.reason = reason


class SignalError(BrokerError):
    """The interrupt listener could not be installed."""
