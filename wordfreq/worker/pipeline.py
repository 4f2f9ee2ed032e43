"""
Pipeline wiring.

listener -> job channel -> worker pool -> result channel -> collector

Shutdown is a two-phase drain: once the stop event fires the listener
finishes its current receive and closes the job channel, workers finish
the jobs in hand and exit, the result channel is closed, and the collector
settles what is left.
"""

import asyncio
import logging

from wordfreq.channel import Channel
from wordfreq.constants import DEFAULT_CHANNEL_SIZE, DEFAULT_RECEIVE_BACKOFF_SECONDS, DEFAULT_TOP_WORDS
from wordfreq.queue.base import MessageQueue
from wordfreq.queue.listener import JobMessageListener
from wordfreq.storage.base import ContentFetcher, ResultNotifier, ResultRecorder
from wordfreq.types.job import Job, JobResult
from wordfreq.worker.collector import ResultCollector
from wordfreq.worker.pool import WorkerPool

logger = logging.getLogger(__name__)


class Pipeline:
    """Owns the channels and the three stages of the job pipeline."""

    def __init__(
        self,
        queue: MessageQueue,
        fetcher: ContentFetcher,
        recorder: ResultRecorder,
        notifier: ResultNotifier,
        num_workers: int,
        job_channel_size: int = DEFAULT_CHANNEL_SIZE,
        result_channel_size: int = DEFAULT_CHANNEL_SIZE,
        receive_backoff_seconds: float = DEFAULT_RECEIVE_BACKOFF_SECONDS,
        top_words: int = DEFAULT_TOP_WORDS,
    ):
        self.jobs: Channel[Job] = Channel(job_channel_size)
        self.results: Channel[JobResult] = Channel(result_channel_size)
        self.listener = JobMessageListener(
            queue,
            self.jobs,
            backoff_seconds=receive_backoff_seconds,
        )
        self.pool = WorkerPool(
            num_workers,
            self.jobs,
            self.results,
            queue,
            fetcher,
            top=top_words,
        )
        self.collector = ResultCollector(recorder, notifier, queue)

    async def run(self, stop: asyncio.Event) -> None:
        """Run until the stop event is set and every stage has drained."""
        logger.info("Pipeline starting", extra={"workers": len(self.pool.workers)})

        listener_task = asyncio.create_task(self.listener.listen(stop), name="job-listener")
        self.pool.start()
        self.collector.start(self.results)

        await self.pool.wait_until_done()
        await self.results.close()
        await self.collector.wait_until_done()

        # Surfaces a listener crash only after the results in flight were settled.
        await listener_task
        logger.info("Pipeline stopped")
