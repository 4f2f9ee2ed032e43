"""
In-memory message queue.

Models lease visibility the way SQS does: a received message is hidden
until its lease lapses, each receive issues a fresh receipt handle, and
handles from earlier deliveries stop working. Used by the tests and for
running the pipeline locally without AWS.
"""

import asyncio
import itertools
import time
from dataclasses import dataclass, field

from wordfreq.errors import TransientQueueError
from wordfreq.queue.base import MessageQueue
from wordfreq.types.job import RawMessage


@dataclass
class _StoredMessage:
    id: str
    body: str
    receipt_handle: str | None = None
    visible_at: float = 0.0
    receive_count: int = 0


@dataclass
class QueueFaults:
    """Failures to inject, consumed one per call until exhausted."""

    receive: int = 0
    delete: int = 0
    extend: int = 0


class InMemoryMessageQueue(MessageQueue):
    """Message queue held in process memory."""

    def __init__(self, visibility_timeout: int = 60, wait_time_seconds: float = 0.05, max_messages: int = 1):
        self._visibility_timeout = visibility_timeout
        self._wait_time_seconds = wait_time_seconds
        self._max_messages = max_messages
        self._messages: dict[str, _StoredMessage] = {}
        self._ids = itertools.count(1)
        self._handles = itertools.count(1)
        self._arrived = asyncio.Event()
        self.faults = QueueFaults()
        self.deleted: list[str] = []
        self.extensions: list[tuple[str, int]] = []
        self.receive_calls = 0

    @property
    def visibility_timeout(self) -> int:
        return self._visibility_timeout

    def send(self, body: str) -> str:
        """Enqueue a message body, returning its message ID."""
        message_id = f"msg-{next(self._ids)}"
        self._messages[message_id] = _StoredMessage(id=message_id, body=body)
        self._arrived.set()
        return message_id

    def __len__(self) -> int:
        return len(self._messages)

    def __contains__(self, message_id: str) -> bool:
        return message_id in self._messages

    def receive_count(self, message_id: str) -> int:
        return self._messages[message_id].receive_count

    def expire_leases(self) -> None:
        """Make every leased message visible again immediately."""
        for msg in self._messages.values():
            msg.visible_at = 0.0
        self._arrived.set()

    def _take_visible(self) -> list[RawMessage]:
        now = time.monotonic()
        taken = []
        for msg in self._messages.values():
            if len(taken) >= self._max_messages:
                break
            if msg.visible_at > now:
                continue
            msg.receipt_handle = f"{msg.id}#{next(self._handles)}"
            msg.visible_at = now + self._visibility_timeout
            msg.receive_count += 1
            taken.append(RawMessage(id=msg.id, receipt_handle=msg.receipt_handle, body=msg.body))
        return taken

    def _find(self, receipt_handle: str) -> _StoredMessage | None:
        for msg in self._messages.values():
            if msg.receipt_handle == receipt_handle:
                return msg
        return None

    async def receive(self, max_wait: float | None = None) -> list[RawMessage]:
        self.receive_calls += 1
        if self.faults.receive > 0:
            self.faults.receive -= 1
            raise TransientQueueError("injected receive failure")

        wait = self._wait_time_seconds if max_wait is None else max_wait
        deadline = time.monotonic() + wait
        while True:
            taken = self._take_visible()
            remaining = deadline - time.monotonic()
            if taken or remaining <= 0:
                return taken
            self._arrived.clear()
            try:
                await asyncio.wait_for(self._arrived.wait(), timeout=remaining)
            except asyncio.TimeoutError:
                pass

    async def delete(self, receipt_handle: str) -> None:
        if self.faults.delete > 0:
            self.faults.delete -= 1
            raise TransientQueueError("injected delete failure")
        msg = self._find(receipt_handle)
        if msg is None:
            return
        del self._messages[msg.id]
        self.deleted.append(msg.id)

    async def extend_lease(self, receipt_handle: str, duration: int | None = None) -> int:
        if self.faults.extend > 0:
            self.faults.extend -= 1
            raise TransientQueueError("injected change visibility failure")
        timeout = self._visibility_timeout if duration is None else duration
        msg = self._find(receipt_handle)
        if msg is None:
            raise TransientQueueError(f"receipt handle {receipt_handle} is invalid")
        msg.visible_at = time.monotonic() + timeout
        self.extensions.append((msg.id, timeout))
        return timeout
