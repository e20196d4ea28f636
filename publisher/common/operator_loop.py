from abc import ABC, abstractmethod
import logging

PROMPT = "Do you wish to send a message? [Y/n] "
YES_ANSWERS = {"y", "yes"}
NO_ANSWERS = {"n", "no"}


class OperatorLoop(ABC):
    """Decides whether the publisher sends one more message."""

    def __init__(self, stop_event=None):
        self.stop_event = stop_event

    def _stopped(self):
        return self.stop_event is not None and self.stop_event.is_set()

    @abstractmethod
    def should_send_again(self) -> bool:
        pass


class InteractivePrompt(OperatorLoop):
    """Asks the operator on the terminal. Enter alone means yes.

    EOF, Ctrl+C or any prompt failure is taken as "no".
    """

    def __init__(self, stop_event=None, input_func=None):
        super().__init__(stop_event)
        self._input = input_func or input

    def should_send_again(self):
        while not self._stopped():
            try:
                answer = self._input(PROMPT).strip().lower()
            except (EOFError, KeyboardInterrupt, OSError) as e:
                logging.debug(f"Prompt ended: {e!r}")
                return False

            if self._stopped():
                return False
            if answer == "" or answer in YES_ANSWERS:
                return True
            if answer in NO_ANSWERS:
                return False
            logging.warning(f"Unrecognised answer '{answer}', please answer y or n")
        return False


class FixedCount(OperatorLoop):
    """Non-interactive loop answering yes ``count`` times."""

    def __init__(self, count, stop_event=None):
        super().__init__(stop_event)
        if count < 0:
            raise ValueError(f"Message count must not be negative, got {count}")
        self.remaining = count

    def should_send_again(self):
        if self._stopped() or self.remaining <= 0:
            return False
        self.remaining -= 1
        return True
