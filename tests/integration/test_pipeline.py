"""
Integration tests for the full job pipeline over in-memory backends.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from tests.helpers import notification_body, wait_until
from wordfreq.constants import JobCompleteStatus
from wordfreq.worker.pipeline import Pipeline


@pytest.fixture
def pipeline(queue, store, recorder, notifier) -> Pipeline:
    return Pipeline(
        queue=queue,
        fetcher=store,
        recorder=recorder,
        notifier=notifier,
        num_workers=3,
        job_channel_size=2,
        result_channel_size=2,
        receive_backoff_seconds=0.01,
    )


async def run_until(pipeline: Pipeline, predicate) -> None:
    """Run the pipeline until the predicate holds, then shut it down."""
    stop = asyncio.Event()
    task = asyncio.create_task(pipeline.run(stop))
    try:
        await wait_until(predicate)
    finally:
        stop.set()
        await asyncio.wait_for(task, timeout=5)


class TestPipeline:
    """End-to-end pipeline scenarios."""

    @pytest.mark.asyncio
    async def test_success_end_to_end(self, pipeline, queue, store, recorder, notifier):
        """Test an uploaded file is counted, recorded, acknowledged and reported."""
        store.put("b", "k.txt", "apple apple Banana! banana, cat")
        message_id = queue.send(notification_body(("us-west-2", "b", "k.txt")))

        await run_until(pipeline, lambda: len(notifier.sent) == 1)

        assert recorder.records["b/k.txt"].words == {"apple": 2, "banana": 2}
        assert queue.deleted == [message_id]
        (sent,) = notifier.sent
        assert sent.status == JobCompleteStatus.SUCCESS
        assert [(w.word, w.count) for w in sent.words] == [("apple", 2), ("banana", 2)]
        assert (sent.job.bucket, sent.job.key, sent.job.region) == ("b", "k.txt", "us-west-2")

    @pytest.mark.asyncio
    async def test_fetch_failure_leaves_message(self, pipeline, queue, recorder, notifier):
        """Test a missing object is reported as a failure and stays queued."""
        message_id = queue.send(notification_body(("us-west-2", "b", "missing.txt")))

        await run_until(pipeline, lambda: len(notifier.sent) == 1)

        (sent,) = notifier.sent
        assert sent.status == JobCompleteStatus.FAILURE
        assert sent.words == []
        assert sent.status_message
        assert recorder.records == {}
        assert message_id in queue

    @pytest.mark.asyncio
    async def test_record_failure_allows_retry(self, pipeline, queue, store, recorder, notifier):
        """Test a result that could not be recorded is retried after redelivery."""
        store.put("b", "k.txt", "retry retry retry")
        message_id = queue.send(notification_body(("us-west-2", "b", "k.txt")))
        recorder.failures = 1

        await run_until(pipeline, lambda: len(notifier.sent) == 1)

        assert notifier.sent[0].status == JobCompleteStatus.FAILURE
        assert message_id in queue

        queue.expire_leases()
        retry = Pipeline(
            queue=queue,
            fetcher=store,
            recorder=recorder,
            notifier=notifier,
            num_workers=1,
        )
        await run_until(retry, lambda: len(notifier.sent) == 2)

        assert notifier.sent[1].status == JobCompleteStatus.SUCCESS
        assert recorder.records["b/k.txt"].words == {"retry": 3}
        assert message_id not in queue

    @pytest.mark.asyncio
    async def test_mixed_batch(self, pipeline, queue, store, recorder, notifier):
        """Test every decoded job produces exactly one notification."""
        for i in range(6):
            store.put("b", f"doc{i}.txt", f"common common unique{i}")
        batch_id = queue.send(
            notification_body(("us-west-2", "b", "doc0.txt"), ("us-west-2", "b", "doc1.txt"))
        )
        single_ids = [
            queue.send(notification_body(("us-west-2", "b", f"doc{i}.txt"))) for i in range(2, 6)
        ]
        poison_id = queue.send("garbage")
        missing_id = queue.send(notification_body(("us-west-2", "b", "nope.txt")))

        await run_until(pipeline, lambda: len(notifier.sent) == 7)

        keys = sorted(m.job.key for m in notifier.sent)
        assert keys == sorted([f"doc{i}.txt" for i in range(6)] + ["nope.txt"])
        assert len(recorder.records) == 6
        assert poison_id in queue.deleted
        assert set(single_ids + [batch_id]) <= set(queue.deleted)
        assert missing_id in queue
        assert len(queue) == 1

    @pytest.mark.asyncio
    async def test_shutdown_drains_in_flight_jobs(self, pipeline, queue, store, notifier):
        """Test jobs already handed to workers are settled before run returns."""
        for i in range(5):
            store.put("b", f"doc{i}.txt", "words words words")
            queue.send(notification_body(("us-west-2", "b", f"doc{i}.txt")))

        stop = asyncio.Event()
        task = asyncio.create_task(pipeline.run(stop))
        await wait_until(lambda: queue.receive_calls >= 1)
        stop.set()
        await asyncio.wait_for(task, timeout=5)

        assert pipeline.jobs.closed
        assert pipeline.results.closed
        # Every received message was settled; the rest were never taken.
        assert len(notifier.sent) + len(queue) == 5
        assert all(m.status == JobCompleteStatus.SUCCESS for m in notifier.sent)

    @pytest.mark.asyncio
    async def test_notifier_crash_does_not_stall_shutdown(self, queue, store, recorder, notifier):
        """Test an unexpected notifier error neither blocks workers nor shutdown."""
        notifier.send = AsyncMock(side_effect=RuntimeError("boom"))
        pipeline = Pipeline(
            queue=queue,
            fetcher=store,
            recorder=recorder,
            notifier=notifier,
            num_workers=1,
            job_channel_size=1,
            result_channel_size=1,
            receive_backoff_seconds=0.01,
        )
        for i in range(8):
            store.put("b", f"doc{i}.txt", "words words words")
            queue.send(notification_body(("us-west-2", "b", f"doc{i}.txt")))

        await run_until(pipeline, lambda: notifier.send.await_count == 8)

        assert len(recorder.records) == 8
        assert len(queue) == 0
