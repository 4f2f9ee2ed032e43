"""
Result collection.

A single consumer drains the result channel. Successful results are
recorded durably and only then is the job message deleted; a result whose
record fails is demoted to a failure and its message is left in the queue
to be redelivered once its lease lapses. Every result, whatever its final
status, is reported to the result queue.
"""

import asyncio
import logging

from wordfreq.channel import Channel
from wordfreq.constants import SPAN_COLLECT_RESULT
from wordfreq.errors import NotifyError, RecordError, TransientQueueError
from wordfreq.observability.metrics import get_metrics
from wordfreq.observability.tracing import get_tracer
from wordfreq.queue.base import MessageQueue
from wordfreq.storage.base import ResultNotifier, ResultRecorder
from wordfreq.types.job import JobResult

logger = logging.getLogger(__name__)


class ResultCollector:
    """Records, acknowledges and reports job results."""

    def __init__(
        self,
        recorder: ResultRecorder,
        notifier: ResultNotifier,
        queue: MessageQueue,
    ):
        self.recorder = recorder
        self.notifier = notifier
        self.queue = queue
        self._task: asyncio.Task | None = None
        self._metrics = get_metrics()

    def start(self, results: Channel[JobResult]) -> None:
        """Start draining the result channel in its own task."""
        if self._task is not None:
            raise RuntimeError("result collector already started")
        self._task = asyncio.create_task(self.process_results(results), name="result-collector")

    async def wait_until_done(self) -> None:
        """Wait until the result channel is closed, drained and processed."""
        if self._task is not None:
            await self._task

    async def process_results(self, results: Channel[JobResult]) -> None:
        """Handle results until the channel is closed and drained."""
        logger.info("Job result collector starting")
        async for result in results:
            await self.handle(result)
        logger.info("Job result collector quitting")

    async def handle(self, result: JobResult) -> JobResult:
        """
        Settle one result.

        Returns:
            The result as reported, possibly demoted to FAILURE.
        """
        message_id = result.job.message_id
        logger.info("Received job result", extra={"message_id": message_id, "status": result.status.value})

        with get_tracer().start_as_current_span(SPAN_COLLECT_RESULT) as span:
            span.set_attribute("message_id", message_id)

            if result.is_success:
                result = await self._settle_success(result)
            else:
                logger.warning(
                    "Job failed, leaving message for redelivery",
                    extra={"message_id": message_id, "error": result.status_message},
                )

            span.set_attribute("status", result.status.value)
            await self._notify(result)

        return result

    async def _notify(self, result: JobResult) -> None:
        message_id = result.job.message_id
        try:
            await self.notifier.send(result)
        except NotifyError as e:
            self._metrics.record_notify_failure()
            logger.error(
                "Failed to send result notification",
                extra={"message_id": message_id, "error": str(e)},
            )
        except Exception:
            self._metrics.record_notify_failure()
            logger.exception("Exception sending result notification", extra={"message_id": message_id})

    async def _settle_success(self, result: JobResult) -> JobResult:
        message_id = result.job.message_id
        try:
            await self.recorder.record(result)
        except RecordError as e:
            self._metrics.record_record_failure()
            logger.error(
                "Failed to record result, leaving message for retry",
                extra={"message_id": message_id, "error": str(e)},
            )
            return result.as_failure(f"record results failed, {e}")
        except Exception as e:
            self._metrics.record_record_failure()
            logger.exception("Exception recording result", extra={"message_id": message_id})
            return result.as_failure(f"record results failed, {e}")

        try:
            await self.queue.delete(result.job.receipt_handle)
        except TransientQueueError as e:
            self._metrics.record_delete_failure()
            logger.error(
                "Failed to delete message",
                extra={"message_id": message_id, "error": str(e)},
            )
        except Exception:
            self._metrics.record_delete_failure()
            logger.exception("Exception deleting message", extra={"message_id": message_id})
        else:
            logger.info("Deleted message", extra={"message_id": message_id})
        return result
