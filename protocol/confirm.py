"""Outcomes of a publish made on a confirm-mode channel."""

from dataclasses import dataclass
from typing import Optional

NOT_ACKNOWLEDGED = "not acknowledged"


class ConfirmOutcome:
    ok = False

    def describe(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class Accepted(ConfirmOutcome):
    ok = True

    def describe(self):
        return "accepted"


@dataclass(frozen=True)
class RejectedByBroker(ConfirmOutcome):
    reason: str

    def describe(self):
        return f"rejected: {self.reason}"


@dataclass(frozen=True)
class Unroutable(RejectedByBroker):
    """Acked, but sent back because no queue is bound for the routing key."""
    reply_code: int = 0
    reply_text: str = ""


@dataclass(frozen=True)
class Unknown(ConfirmOutcome):
    detail: str

    def describe(self):
        return f"unknown broker response: {self.detail}"


@dataclass(frozen=True)
class ReturnedMessage:
    reply_code: int
    reply_text: str


def classify_confirm(acked: Optional[bool], returned: Optional[ReturnedMessage] = None,
                     detail: str = "") -> ConfirmOutcome:
    """Resolve the broker's answer to a single publish.

    An ack that carries a returned message is a failure: the broker could not
    route the message and handed it back. Anything that is neither a clean ack
    nor a nack is reported as ``Unknown`` and never counted as a success.
    """
    if acked is True and returned is None:
        return Accepted()
    if acked is True:
        return Unroutable(
            reason=f"returned by broker ({returned.reply_code} {returned.reply_text})",
            reply_code=returned.reply_code,
            reply_text=returned.reply_text,
        )
    if acked is False:
        return RejectedByBroker(NOT_ACKNOWLEDGED)
    return Unknown(detail or "malformed confirm")
