import logging

import pika

from protocol.errors import AckError, ChannelError, DeliveryDecodeError
from protocol.messages import Cancelled, Delivery, DeliveryError, IncomingDelivery

DEFAULT_INACTIVITY_TIMEOUT = 1.0


class DeliveryStream:
    """Lazy sequence of events for one queue subscription.

    Built on pika's ``consume`` generator with a broker-assigned consumer tag
    and manual acks. Idle ticks are used to look at ``stop_event``; once it
    is set the stream ends quietly. If the broker cancels the subscription
    the stream ends with a single ``Cancelled`` event.
    """

    def __init__(self, channel, queue_name, stop_event, inactivity_timeout=DEFAULT_INACTIVITY_TIMEOUT):
        self._channel = channel
        self.queue_name = queue_name
        self._stop_event = stop_event
        self._inactivity_timeout = inactivity_timeout

    def __iter__(self):
        try:
            for method, properties, body in self._channel.consume(
                    queue=self.queue_name,
                    auto_ack=False,
                    inactivity_timeout=self._inactivity_timeout):
                if method is None:
                    if self._stop_event.is_set():
                        return
                    continue

                # consume only yields Deliver frames today, anything else is reported
                if not isinstance(method, pika.spec.Basic.Deliver):
                    yield DeliveryError(f"Unexpected frame on queue {self.queue_name}: {method!r}")
                    continue

                yield Delivery(IncomingDelivery(
                    routing_key=method.routing_key,
                    payload=body or b"",
                    delivery_tag=method.delivery_tag,
                    headers=getattr(properties, "headers", None) or {},
                    exchange=method.exchange,
                    redelivered=method.redelivered,
                ))

                if self._stop_event.is_set():
                    return
        except (pika.exceptions.AMQPConnectionError, pika.exceptions.AMQPChannelError) as e:
            logging.error(f"Failed to consume from {self.queue_name}: {e!r}")
            raise ChannelError(f"Failed to consume from {self.queue_name}: {e!r}") from e

        if not self._stop_event.is_set():
            yield Cancelled()


def subscribe(session, queue_name, stop_event, inactivity_timeout=DEFAULT_INACTIVITY_TIMEOUT, prefetch_count=None):
    channel = session.channel
    if prefetch_count is not None:
        channel.basic_qos(prefetch_count=prefetch_count)
    return DeliveryStream(channel, queue_name, stop_event, inactivity_timeout)


class Consumer:
    """Renders and acknowledges deliveries one at a time, in arrival order.

    In strict mode a delivery that cannot be handled stops the consumer.
    Otherwise the failure is logged and the delivery is rejected without
    requeue, so it is settled exactly once either way.
    """

    def __init__(self, session, queue_name, handler, stop_event, strict=False,
                 inactivity_timeout=DEFAULT_INACTIVITY_TIMEOUT, prefetch_count=None):
        self.session = session
        self.queue_name = queue_name
        self.handler = handler
        self.stop_event = stop_event
        self.strict = strict
        self.inactivity_timeout = inactivity_timeout
        self.prefetch_count = prefetch_count
        self.cancelled = False
        self.acked = 0
        self.rejected = 0
        self._last_settled_tag = 0

    def run(self):
        stream = subscribe(self.session, self.queue_name, self.stop_event,
                           self.inactivity_timeout, self.prefetch_count)
        logging.info(f"Subscribed to queue {self.queue_name}!")
        logging.info("Listening for messages")

        for event in stream:
            if isinstance(event, Delivery):
                self._process(event.delivery)
            elif isinstance(event, DeliveryError):
                logging.warning(f"Failed to consume queue message {event.reason}")
            elif isinstance(event, Cancelled):
                logging.warning(f"Consumer for queue {self.queue_name} was cancelled by the broker")
                self.cancelled = True

        logging.info(f"Stopped consuming from {self.queue_name}. Acked: {self.acked}, rejected: {self.rejected}")
        return self.acked, self.rejected

    def _process(self, delivery):
        logging.debug(f"Received delivery {delivery.delivery_tag} with routing key: {delivery.routing_key}")
        try:
            self.handler.handle(delivery)
        except Exception as e:
            if self.strict:
                raise
            logging.error(f"Failed to process message {delivery.delivery_tag}: {e}",
                          exc_info=not isinstance(e, DeliveryDecodeError))
            self._reject(delivery)
            return

        self._ack(delivery)

    def _settle(self, delivery):
        # Tags grow monotonically on a channel, anything at or below the last
        # settled tag has already been acked or rejected
        if delivery.delivery_tag <= self._last_settled_tag:
            logging.warning(f"Delivery {delivery.delivery_tag} already settled, skipping")
            return False
        self._last_settled_tag = delivery.delivery_tag
        return True

    def _ack(self, delivery):
        if not self._settle(delivery):
            return
        try:
            self.session.channel.basic_ack(delivery_tag=delivery.delivery_tag)
        except pika.exceptions.AMQPError as e:
            logging.error(f"Message acknowledgement failed! {e!r}")
            raise AckError(delivery.delivery_tag, repr(e)) from e
        self.acked += 1

    def _reject(self, delivery):
        if not self._settle(delivery):
            return
        try:
            self.session.channel.basic_nack(delivery_tag=delivery.delivery_tag, requeue=False)
        except pika.exceptions.AMQPError as e:
            logging.error(f"Message rejection failed! {e!r}")
            raise AckError(delivery.delivery_tag, repr(e)) from e
        self.rejected += 1
