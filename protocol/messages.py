from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass(frozen=True)
class OutgoingMessage:
    exchange: str
    payload: bytes
    routing_key: str = ""
    headers: Optional[Dict[str, str]] = None
    mandatory: bool = True


@dataclass(frozen=True)
class IncomingDelivery:
    routing_key: str
    payload: bytes
    delivery_tag: int
    headers: Dict[str, object] = field(default_factory=dict)
    exchange: str = ""
    redelivered: bool = False


# Events produced by a delivery stream

@dataclass(frozen=True)
class Delivery:
    delivery: IncomingDelivery


@dataclass(frozen=True)
class Cancelled:
    """The broker revoked the subscription. Always the last event of a stream."""


@dataclass(frozen=True)
class DeliveryError:
    """A single frame could not be turned into a delivery. The stream continues."""
    reason: str
