"""
Amazon SQS implementation of the message queue.
"""

import asyncio
import logging
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from wordfreq.errors import TransientQueueError
from wordfreq.queue.base import MessageQueue
from wordfreq.types.job import RawMessage

logger = logging.getLogger(__name__)

# Returned for handles of messages that were already deleted or whose lease lapsed.
_STALE_HANDLE_CODES = frozenset({"ReceiptHandleIsInvalid", "InvalidParameterValue"})


def _error_code(exc: Exception) -> str:
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code", "")
    return ""


class SQSMessageQueue(MessageQueue):
    """
    Message queue backed by an SQS queue URL.

    boto3 is blocking, so every call runs in a worker thread to keep the
    event loop free for the other pipeline tasks.
    """

    def __init__(
        self,
        client: Any,
        queue_url: str,
        visibility_timeout: int,
        wait_time_seconds: int = 20,
        max_messages: int = 1,
    ):
        """
        Initialize the queue adapter.

        Args:
            client: boto3 SQS client.
            queue_url: URL of the queue to read from.
            visibility_timeout: Lease applied to received messages.
            wait_time_seconds: Long-poll wait for receive.
            max_messages: Upper bound on messages per receive (1-10).
        """
        self._client = client
        self._queue_url = queue_url
        self._visibility_timeout = visibility_timeout
        self._wait_time_seconds = wait_time_seconds
        self._max_messages = max_messages

    @property
    def visibility_timeout(self) -> int:
        return self._visibility_timeout

    @property
    def queue_url(self) -> str:
        return self._queue_url

    async def receive(self, max_wait: int | None = None) -> list[RawMessage]:
        wait = self._wait_time_seconds if max_wait is None else max_wait
        try:
            response = await asyncio.to_thread(
                self._client.receive_message,
                QueueUrl=self._queue_url,
                MaxNumberOfMessages=self._max_messages,
                WaitTimeSeconds=wait,
                VisibilityTimeout=self._visibility_timeout,
            )
        except (BotoCoreError, ClientError) as e:
            raise TransientQueueError(f"receive from {self._queue_url} failed: {e}") from e

        return [
            RawMessage(
                id=msg["MessageId"],
                receipt_handle=msg["ReceiptHandle"],
                body=msg.get("Body", ""),
            )
            for msg in response.get("Messages", [])
        ]

    async def delete(self, receipt_handle: str) -> None:
        try:
            await asyncio.to_thread(
                self._client.delete_message,
                QueueUrl=self._queue_url,
                ReceiptHandle=receipt_handle,
            )
        except ClientError as e:
            if _error_code(e) in _STALE_HANDLE_CODES:
                logger.warning(
                    "Message already deleted or lease expired",
                    extra={"error": str(e)},
                )
                return
            raise TransientQueueError(f"delete failed: {e}") from e
        except BotoCoreError as e:
            raise TransientQueueError(f"delete failed: {e}") from e

    async def extend_lease(self, receipt_handle: str, duration: int | None = None) -> int:
        timeout = self._visibility_timeout if duration is None else duration
        try:
            await asyncio.to_thread(
                self._client.change_message_visibility,
                QueueUrl=self._queue_url,
                ReceiptHandle=receipt_handle,
                VisibilityTimeout=timeout,
            )
        except (BotoCoreError, ClientError) as e:
            raise TransientQueueError(f"change visibility failed: {e}") from e
        return timeout
