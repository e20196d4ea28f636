import logging
import signal
import threading
from enum import Enum

from protocol.errors import SignalError


class ShutdownState(Enum):
    RUNNING = 1
    DRAINING = 2
    STOPPED = 3


class ShutdownCoordinator:
    """Turns the first interrupt into an orderly close of the broker session.

    The signal handler only flips the state and sets ``stop_event``; the
    worker loop observes the event between messages, so whatever message is
    being handled when the signal arrives is finished (and acked) before the
    session is closed by ``shutdown``.

    With ``interrupt=True`` the handler also raises KeyboardInterrupt, for
    callers blocked in a read that cannot poll the event.
    """

    def __init__(self, stop_event=None, interrupt=False):
        self.stop_event = stop_event or threading.Event()
        self.interrupt = interrupt
        self.state = ShutdownState.RUNNING
        self.signal_received = None

    def register(self, signals=(signal.SIGINT, signal.SIGTERM)):
        try:
            for signum in signals:
                signal.signal(signum, self._handle_signal)
        except (ValueError, OSError) as e:
            logging.error(f"Unable to listen for shutdown signal: {e}")
            raise SignalError(f"Unable to listen for shutdown signal: {e}") from e
        logging.debug(f"Listening for shutdown signals {[signal.Signals(s).name for s in signals]}")

    def _handle_signal(self, signum, _frame):
        if self.state is not ShutdownState.RUNNING:
            logging.info(f"Received signal {signum} while {self.state.name}, ignoring")
            return
        logging.info(f"Received signal {signum}, stopping...")
        self.signal_received = signum
        self.request_stop()
        if self.interrupt:
            # input() resumes after the handler returns unless it raises
            raise KeyboardInterrupt(f"signal {signum}")

    def request_stop(self):
        if self.state is ShutdownState.RUNNING:
            self.state = ShutdownState.DRAINING
        self.stop_event.set()

    def shutdown(self, session):
        """Close ``session`` (channel then connection) and finish the run."""
        if self.state is ShutdownState.STOPPED:
            return
        self.request_stop()

        if session is not None and session.connected:
            session.close()
        self.state = ShutdownState.STOPPED
        logging.info("Shutting Down")
