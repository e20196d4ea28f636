import logging
from enum import Enum

import pika

from protocol.errors import BrokerConnectionError, ChannelError, SessionStateError

rabbit_logger = logging.getLogger("RabbitMQ")

CLOSE_REPLY_CODE = 0
CLOSE_REPLY_TEXT = "OK"


class SessionState(Enum):
    NEW = 1
    OPEN = 2
    CLOSED = 3


class RabbitSession:
    """Owns one connection and one channel to the broker.

    There is no retry: a failure to connect or to open the channel is raised
    to the caller, which is expected to end the run.
    """

    def __init__(self, url):
        self.url = url
        self.confirms = False
        self.state = SessionState.NEW
        self._connection = None
        self._channel = None
        self._publish_seq = 0

    def connect(self):
        """Open the connection to the broker."""
        if self.state is not SessionState.NEW or self._connection is not None:
            raise SessionStateError(f"Session to {self.url} already connected")

        try:
            parameters = pika.URLParameters(self.url)
            self._connection = pika.BlockingConnection(parameters)
        except (pika.exceptions.AMQPError, ValueError, OSError) as e:
            rabbit_logger.error(f"Could not connect to {self.url}: {e!r}")
            raise BrokerConnectionError(f"Could not connect to {self.url}: {e!r}") from e

        rabbit_logger.debug(f"Connection to {self.url} open: {self._connection.is_open}")
        return self

    def open_channel(self, confirms=False):
        """Open the session channel, optionally switching it to confirm mode.

        Confirm mode is selected right after the channel opens and only here,
        so it can never be enabled twice or after a publish.
        """
        if self._connection is None or self._channel is not None:
            raise SessionStateError("Channel can only be opened once, on a connected session")
        if not self._connection.is_open:
            raise SessionStateError(f"Connection to {self.url} is not open")

        try:
            self._channel = self._connection.channel()
            if confirms:
                self._channel.confirm_delivery()
        except pika.exceptions.AMQPError as e:
            rabbit_logger.error(f"Failed to create channel: {e!r}")
            raise ChannelError(f"Failed to create channel: {e!r}") from e

        self.confirms = confirms
        self.state = SessionState.OPEN
        rabbit_logger.debug(f"Channel {self._channel.channel_number} open (confirms: {confirms})")
        return self._channel

    @property
    def channel(self):
        """The live channel. Never handed out before open or after close."""
        if self.state is not SessionState.OPEN:
            raise SessionStateError(f"Session is {self.state.name}, channel not available")
        if self._connection.is_closed or self._channel.is_closed:
            raise SessionStateError("Channel was closed by the broker")
        return self._channel

    @property
    def connected(self):
        return self._connection is not None

    def next_publish_seq(self):
        """Sequence number of the next publish on this channel."""
        self._publish_seq += 1
        return self._publish_seq

    def close(self):
        """Close the channel and then the connection.

        Closing an already closed session does nothing. Closing a session
        that was never connected is an error.
        """
        if self.state is SessionState.CLOSED:
            rabbit_logger.debug("Session already closed")
            return
        if self._connection is None:
            raise SessionStateError("Cannot close a session that was never connected")

        try:
            if self._channel is not None and self._channel.is_open:
                try:
                    self._channel.close(CLOSE_REPLY_CODE, CLOSE_REPLY_TEXT)
                    rabbit_logger.info("Channel closed")
                except pika.exceptions.AMQPError as e:
                    rabbit_logger.error(f"Error closing RabbitMQ channel: {e!r}", exc_info=True)
            if self._connection.is_open:
                try:
                    self._connection.close(CLOSE_REPLY_CODE, CLOSE_REPLY_TEXT)
                    rabbit_logger.info("Connection closed")
                except pika.exceptions.AMQPError as e:
                    rabbit_logger.error(f"Error closing RabbitMQ connection: {e!r}", exc_info=True)
        finally:
            self.state = SessionState.CLOSED
            self._channel = None
            self._connection = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if self.connected:
            self.close()
        return False
