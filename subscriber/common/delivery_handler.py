from abc import ABC, abstractmethod
import logging

from protocol.errors import DeliveryDecodeError
from protocol.headers import render_headers
from protocol.messages import IncomingDelivery


def decode_payload(delivery: IncomingDelivery) -> str:
    try:
        return delivery.payload.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DeliveryDecodeError(delivery.delivery_tag, str(e)) from e


def render_delivery(delivery: IncomingDelivery) -> str:
    """``Received <routing key> :: <headers>`` followed by the payload on its own line."""
    return f"Received {delivery.routing_key} :: {render_headers(delivery.headers)}\n{decode_payload(delivery)}"


class DeliveryHandler(ABC):
    """Processes one delivery. The consumer acks it once ``handle`` returns."""

    @abstractmethod
    def handle(self, delivery: IncomingDelivery) -> None:
        pass


class LogDeliveryHandler(DeliveryHandler):
    """Writes each rendered delivery to the log stream."""

    def handle(self, delivery):
        logging.info(f"\n{render_delivery(delivery)}")
