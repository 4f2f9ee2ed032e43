"""
Message queue interface.

Delivery is at-least-once: a received message is leased (hidden from other
receivers) for the visibility timeout and reappears unless it is deleted.
"""

from abc import ABC, abstractmethod

from wordfreq.types.job import RawMessage


class MessageQueue(ABC):
    """Abstract durable queue with receive, delete and lease extension."""

    @property
    @abstractmethod
    def visibility_timeout(self) -> int:
        """Lease, in seconds, applied on receive and on each extension."""

    @abstractmethod
    async def receive(self, max_wait: int | None = None) -> list[RawMessage]:
        """
        Receive zero or more leased messages.

        Args:
            max_wait: Seconds to wait for a message. Defaults to the
                queue's configured long-poll wait.

        Raises:
            TransientQueueError: On transport or service errors. The
                caller should back off and retry.
        """

    @abstractmethod
    async def delete(self, receipt_handle: str) -> None:
        """
        Permanently remove a message.

        Deleting a message that is already gone is not an error.

        Raises:
            TransientQueueError: If the backend rejected the call.
        """

    @abstractmethod
    async def extend_lease(self, receipt_handle: str, duration: int | None = None) -> int:
        """
        Renew a message's lease.

        Args:
            receipt_handle: Handle from the delivery being extended.
            duration: Lease to apply. Defaults to visibility_timeout.

        Returns:
            The lease duration applied, in seconds.

        Raises:
            TransientQueueError: If the backend rejected the call.
        """
