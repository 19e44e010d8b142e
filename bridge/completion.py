"""Per-invocation completion signalling: the first signal wins."""

import enum
import logging
from dataclasses import dataclass

import anyio

from bridge.asgi import Message, Send

logger = logging.getLogger(__name__)


class CompletionKind(enum.Enum):
    NORMAL = "normal"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class Completion:
    kind: CompletionKind
    reason: str | None = None


class CompletionChannel:
    """One-shot outcome for a single invocation."""

    def __init__(self) -> None:
        self._event = anyio.Event()
        self._outcome: Completion | None = None

    @property
    def completed(self) -> bool:
        return self._outcome is not None

    @property
    def outcome(self) -> Completion | None:
        return self._outcome

    def signal(self, kind: CompletionKind, reason: str | None = None) -> bool:
        """Record the outcome. Returns False when one was already recorded."""
        if self._outcome is not None:
            logger.debug(
                "Ignoring late completion signal",
                extra={"kind": kind.value, "reason": reason, "outcome": self._outcome.kind.value},
            )
            return False
        self._outcome = Completion(kind, reason)
        self._event.set()
        return True

    async def wait(self) -> Completion:
        await self._event.wait()
        if self._outcome is None:
            raise RuntimeError("Completion event set without an outcome.")
        return self._outcome


class ObservedResponse:
    """
    Wraps an ASGI ``send`` callable without changing what it writes.

    The final ``http.response.body`` message (``more_body`` false) marks the
    response as finalized and signals a normal completion on the channel.
    """

    def __init__(self, send: Send, channel: CompletionChannel) -> None:
        self._send = send
        self._channel = channel
        self.started = False
        self.finalized = False
        self.status: int | None = None

    async def send(self, message: Message, *, observe: bool = True) -> None:
        """Forward ``message``; ``observe=False`` writes without signalling the channel."""
        message_type = message.get("type")
        if message_type == "http.response.start":
            self.started = True
            self.status = message.get("status")
        await self._send(message)

        if message_type == "http.response.body" and not message.get("more_body", False):
            self.finalized = True
            if observe:
                self._channel.signal(CompletionKind.NORMAL)

    __call__ = send
