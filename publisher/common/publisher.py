import logging

import pika

from protocol.confirm import ReturnedMessage, classify_confirm
from protocol.errors import PublishError, SessionStateError
from protocol.messages import OutgoingMessage

PAYLOAD_TEMPLATE = "Hello person #{:02}!"


def _returned_from(error):
    """Reply code and text of the first message the broker sent back."""
    for returned in getattr(error, "messages", None) or []:
        method = getattr(returned, "method", None)
        if method is not None:
            return ReturnedMessage(getattr(method, "reply_code", 0), getattr(method, "reply_text", ""))
    return ReturnedMessage(0, "")


class Publisher:
    """Publishes one message at a time on a confirm-mode session.

    pika's blocking channel waits for the broker confirm inside
    ``basic_publish``, so a publish never starts before the previous one
    has been resolved.
    """

    def __init__(self, session, exchange, routing_key="", headers=None):
        if not session.confirms:
            raise SessionStateError("Publishing needs a channel in confirm mode")
        self.session = session
        self.exchange = exchange
        self.routing_key = routing_key
        self.headers = headers
        self.counter = 0
        self.accepted = 0
        self.failed = 0

    def publish(self, message: OutgoingMessage):
        """Send ``message`` and return the broker's verdict as a ConfirmOutcome.

        Raises PublishError if the connection or channel fails while sending.
        """
        channel = self.session.channel
        seq = self.session.next_publish_seq()
        # None leaves the headers property out, {} still sends an empty table
        properties = pika.BasicProperties(headers=message.headers)

        try:
            channel.basic_publish(
                exchange=message.exchange,
                routing_key=message.routing_key,
                body=message.payload,
                properties=properties,
                mandatory=message.mandatory,
            )
            outcome = classify_confirm(True)
        except pika.exceptions.UnroutableError as e:
            outcome = classify_confirm(True, returned=_returned_from(e))
        except pika.exceptions.NackError:
            outcome = classify_confirm(False)
        except pika.exceptions.ProtocolSyntaxError as e:
            outcome = classify_confirm(None, detail=repr(e))
        except (pika.exceptions.AMQPConnectionError, pika.exceptions.AMQPChannelError) as e:
            logging.error(f"Failed to publish message #{seq} to exchange '{message.exchange}': {e!r}")
            raise PublishError(f"Failed to publish message #{seq}: {e!r}") from e
        except pika.exceptions.AMQPError as e:
            outcome = classify_confirm(None, detail=repr(e))

        logging.debug(f"Publish #{seq} to '{message.exchange}' with key '{message.routing_key}': {outcome}")
        return outcome

    def send_next(self):
        """Build the next payload, publish it and report the outcome."""
        self.counter += 1
        logging.info(f"Sending Message {self.counter} ...")
        payload = PAYLOAD_TEMPLATE.format(self.counter)
        logging.info(f"> {payload}")

        message = OutgoingMessage(
            exchange=self.exchange,
            routing_key=self.routing_key,
            payload=payload.encode("utf-8"),
            headers=self.headers,
        )
        outcome = self.publish(message)

        if outcome.ok:
            self.accepted += 1
            logging.info(f"Message {self.counter} sent! ({outcome.describe()})")
        else:
            self.failed += 1
            logging.error(f"Message {self.counter} not delivered: {outcome.describe()}")
        return outcome

    def run(self, operator_loop):
        """Keep sending while the operator loop asks for another message."""
        while operator_loop.should_send_again():
            self.send_next()
        logging.info(f"Finishing off and cleaning up. Accepted: {self.accepted}, failed: {self.failed}")
        return self.accepted, self.failed
