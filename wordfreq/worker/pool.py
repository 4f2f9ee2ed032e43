"""
Worker pool for processing jobs.

Each worker pulls jobs from the job channel until it is closed and drained,
streams the named object, counts its words and pushes exactly one result
per job onto the result channel.
"""

import asyncio
import logging

from wordfreq.channel import Channel
from wordfreq.constants import DEFAULT_TOP_WORDS, SPAN_PROCESS_JOB
from wordfreq.errors import WordFreqError
from wordfreq.observability.logging import bind_context, log_context
from wordfreq.observability.metrics import get_metrics
from wordfreq.observability.tracing import get_tracer
from wordfreq.queue.base import MessageQueue
from wordfreq.storage.base import ContentFetcher
from wordfreq.types.job import Job, JobResult, Word
from wordfreq.worker.wordcount import WordCounter

logger = logging.getLogger(__name__)


class Worker:
    """An individual processor of jobs from the job channel."""

    def __init__(
        self,
        worker_id: int,
        jobs: Channel[Job],
        results: Channel[JobResult],
        fetcher: ContentFetcher,
        counter: WordCounter,
    ):
        self.worker_id = worker_id
        self.jobs = jobs
        self.results = results
        self.fetcher = fetcher
        self.counter = counter
        self._metrics = get_metrics()

    async def run(self) -> None:
        """Process jobs until the job channel is closed and drained."""
        bind_context(worker_id=self.worker_id)
        logger.info("Worker starting")
        async for job in self.jobs:
            result = await self.process(job)
            await self.results.put(result)
        logger.info("Worker quitting")

    async def process(self, job: Job) -> JobResult:
        """
        Process a single job into its result.

        Never raises for job-level failures: they become FAILURE results.
        """
        location = job.location
        with log_context(message_id=job.message_id, bucket=location.bucket, key=location.key):
            logger.info("Worker received job")
            result = await self._process_in_span(job)
        self._metrics.record_job_completed(result.status.value, result.duration.total_seconds())
        return result

    async def _process_in_span(self, job: Job) -> JobResult:
        location = job.location
        with get_tracer().start_as_current_span(SPAN_PROCESS_JOB) as span:
            span.set_attribute("message_id", job.message_id)
            span.set_attribute("bucket", location.bucket)
            span.set_attribute("key", location.key)

            try:
                words = await self._count(job)
            except WordFreqError as e:
                result = JobResult.failure(job, str(e), job.elapsed())
                logger.warning("Failed to process job", extra={"error": str(e)})
            except Exception as e:
                result = JobResult.failure(job, f"unexpected worker error: {e}", job.elapsed())
                logger.exception("Exception processing job")
            else:
                result = JobResult.success(job, words, job.elapsed())
                logger.info(
                    "Processed job",
                    extra={"words": len(words), "duration": f"{result.duration.total_seconds():.3f}s"},
                )

            span.set_attribute("status", result.status.value)
            span.set_attribute("lease_seconds", job.lease_seconds)
        return result

    async def _count(self, job: Job) -> list[Word]:
        stream = await self.fetcher.get(job.location)
        try:
            return await self.counter.count_top_words(stream, job)
        finally:
            await stream.aclose()


class WorkerPool:
    """
    A fixed set of workers sharing the job and result channels.

    Workers hold no state between jobs; the channels are the only thing
    they share.
    """

    def __init__(
        self,
        size: int,
        jobs: Channel[Job],
        results: Channel[JobResult],
        queue: MessageQueue,
        fetcher: ContentFetcher,
        top: int = DEFAULT_TOP_WORDS,
    ):
        """
        Initialize the pool.

        Args:
            size: Number of workers.
            jobs: Channel jobs are pulled from.
            results: Channel results are pushed onto.
            queue: Queue owning the job messages, for lease extension.
            fetcher: Source of object content.
            top: Number of top words to report per job.
        """
        if size <= 0:
            raise ValueError("worker pool size must be positive")
        counter = WordCounter(queue, top=top)
        self.workers = [
            Worker(i, jobs, results, fetcher, counter) for i in range(size)
        ]
        self._tasks: list[asyncio.Task] = []

    def start(self) -> None:
        """Start every worker in its own task."""
        if self._tasks:
            raise RuntimeError("worker pool already started")
        self._tasks = [
            asyncio.create_task(worker.run(), name=f"worker-{worker.worker_id}")
            for worker in self.workers
        ]

    async def wait_until_done(self) -> None:
        """Wait for all workers to observe the closed job channel and exit."""
        await asyncio.gather(*self._tasks)
