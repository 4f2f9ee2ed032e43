"""
Job message listener.

Long-polls the job queue, decodes each notification into jobs and feeds
them to the worker pool through the job channel. The channel is closed
when the listener stops, which tells the workers no more jobs will come.
"""

import asyncio
import logging
from collections.abc import Callable

from wordfreq.channel import Channel
from wordfreq.constants import DEFAULT_RECEIVE_BACKOFF_SECONDS
from wordfreq.errors import DecodeError, TransientQueueError
from wordfreq.observability.metrics import get_metrics
from wordfreq.queue.base import MessageQueue
from wordfreq.types.job import Job, RawMessage
from wordfreq.worker.decoder import decode_job_message

logger = logging.getLogger(__name__)

Decoder = Callable[[RawMessage, int], list[Job]]


class JobMessageListener:
    """
    Moves jobs from the message queue onto the job channel.

    Features:
    - Back off and retry on transient receive failures
    - Discard of undecodable (poison) messages
    - Stops after the current receive cycle once the stop event is set
    """

    def __init__(
        self,
        queue: MessageQueue,
        jobs: Channel[Job],
        backoff_seconds: float = DEFAULT_RECEIVE_BACKOFF_SECONDS,
        decoder: Decoder = decode_job_message,
    ):
        """
        Initialize the listener.

        Args:
            queue: Queue job messages are received from.
            jobs: Channel decoded jobs are pushed onto. Closed on exit.
            backoff_seconds: Pause after a failed receive.
            decoder: Turns a message into jobs.
        """
        self.queue = queue
        self.jobs = jobs
        self.backoff_seconds = backoff_seconds
        self._decode = decoder
        self._metrics = get_metrics()

    async def listen(self, stop: asyncio.Event) -> None:
        """Receive until the stop event is set, then close the job channel."""
        logger.info("Job message listener starting")
        try:
            while not stop.is_set():
                try:
                    messages = await self.queue.receive()
                except TransientQueueError as e:
                    logger.warning(
                        "Failed to read from message queue",
                        extra={"error": str(e), "backoff_seconds": self.backoff_seconds},
                    )
                    self._metrics.record_receive_error()
                    await self._backoff(stop)
                    continue

                if messages:
                    self._metrics.record_messages_received(len(messages))

                for message in messages:
                    await self._dispatch(message)
        finally:
            await self.jobs.close()
            logger.info("Job message listener quitting")

    async def _dispatch(self, message: RawMessage) -> None:
        logger.info("Processing message", extra={"message_id": message.id})
        try:
            jobs = self._decode(message, self.queue.visibility_timeout)
        except DecodeError as e:
            logger.warning(
                "Failed to parse job message, discarding",
                extra={"message_id": message.id, "error": str(e)},
            )
            self._metrics.record_poison_message()
            try:
                await self.queue.delete(message.receipt_handle)
            except TransientQueueError as delete_error:
                logger.error(
                    "Failed to delete poison message",
                    extra={"message_id": message.id, "error": str(delete_error)},
                )
            return

        for job in jobs:
            await self.jobs.put(job)

    async def _backoff(self, stop: asyncio.Event) -> None:
        try:
            await asyncio.wait_for(stop.wait(), timeout=self.backoff_seconds)
        except asyncio.TimeoutError:
            pass
