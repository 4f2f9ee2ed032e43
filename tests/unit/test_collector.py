"""
Unit tests for result collection.
"""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from wordfreq.channel import Channel
from wordfreq.constants import JobCompleteStatus
from wordfreq.types.job import JobResult, Word
from wordfreq.worker.collector import ResultCollector


@pytest.fixture
def collector(recorder, notifier, queue) -> ResultCollector:
    return ResultCollector(recorder, notifier, queue)


def success(job) -> JobResult:
    return JobResult.success(job, [Word("apple", 2), Word("banana", 1)], timedelta(seconds=1))


class TestResultCollector:
    """Tests for ResultCollector.handle."""

    @pytest.mark.asyncio
    async def test_success_recorded_deleted_notified(self, collector, recorder, notifier, queue, leased_job):
        """Test a success is recorded, acknowledged and reported."""
        job = await leased_job(bucket="b", key="k.txt")

        reported = await collector.handle(success(job))

        assert reported.status == JobCompleteStatus.SUCCESS
        assert recorder.records["b/k.txt"].words == {"apple": 2, "banana": 1}
        assert queue.deleted == [job.message_id]
        assert job.message_id not in queue
        assert len(notifier.sent) == 1
        assert notifier.sent[0].status == JobCompleteStatus.SUCCESS

    @pytest.mark.asyncio
    async def test_record_failure_demotes_result(self, collector, recorder, notifier, queue, leased_job):
        """Test a failed record is reported as a failure and keeps the message."""
        job = await leased_job()
        recorder.failures = 1
        original = success(job)

        reported = await collector.handle(original)

        assert reported.status == JobCompleteStatus.FAILURE
        assert reported.status_message.startswith("record results failed")
        assert original.status == JobCompleteStatus.SUCCESS
        assert job.message_id in queue
        assert queue.deleted == []
        assert [m.status for m in notifier.sent] == [JobCompleteStatus.FAILURE]
        assert notifier.sent[0].status_message == reported.status_message

    @pytest.mark.asyncio
    async def test_failure_left_in_queue(self, collector, recorder, notifier, queue, leased_job):
        """Test a failed job is reported without recording or deleting."""
        job = await leased_job()
        failed = JobResult.failure(job, "get object failed", timedelta(seconds=1))

        await collector.handle(failed)

        assert recorder.calls == 0
        assert job.message_id in queue
        assert notifier.sent[0].status == JobCompleteStatus.FAILURE
        assert notifier.sent[0].words == []
        assert notifier.sent[0].status_message == "get object failed"

    @pytest.mark.asyncio
    async def test_delete_failure_not_fatal(self, collector, recorder, notifier, queue, leased_job):
        """Test a failed delete still reports success."""
        job = await leased_job()
        queue.faults.delete = 1

        reported = await collector.handle(success(job))

        assert reported.status == JobCompleteStatus.SUCCESS
        assert recorder.calls == 1
        assert job.message_id in queue
        assert notifier.sent[0].status == JobCompleteStatus.SUCCESS

    @pytest.mark.asyncio
    async def test_notify_failure_not_fatal(self, collector, notifier, queue, leased_job):
        """Test a failed notification is not retried and does not raise."""
        job = await leased_job()
        notifier.failures = 1

        await collector.handle(success(job))

        assert notifier.calls == 1
        assert notifier.sent == []
        assert queue.deleted == [job.message_id]

    @pytest.mark.asyncio
    async def test_redelivered_message_deleted_once(self, collector, queue, leased_job):
        """Test a duplicate result for an already deleted message is harmless."""
        job = await leased_job()

        await collector.handle(success(job))
        await collector.handle(success(job))

        assert queue.deleted == [job.message_id]

    @pytest.mark.asyncio
    async def test_unexpected_notify_error_not_fatal(self, collector, notifier, queue, leased_job):
        """Test a notifier raising an unexpected error does not escape handle."""
        job = await leased_job()
        notifier.send = AsyncMock(side_effect=RuntimeError("boom"))

        reported = await collector.handle(success(job))

        assert reported.status == JobCompleteStatus.SUCCESS
        notifier.send.assert_awaited_once()
        assert queue.deleted == [job.message_id]

    @pytest.mark.asyncio
    async def test_unexpected_record_error_demotes_result(self, collector, recorder, notifier, queue, leased_job):
        """Test a recorder raising an unexpected error is reported as a failure."""
        job = await leased_job()
        recorder.record = AsyncMock(side_effect=RuntimeError("disk gone"))

        reported = await collector.handle(success(job))

        assert reported.status == JobCompleteStatus.FAILURE
        assert reported.status_message == "record results failed, disk gone"
        assert job.message_id in queue
        assert [m.status for m in notifier.sent] == [JobCompleteStatus.FAILURE]

    @pytest.mark.asyncio
    async def test_unexpected_delete_error_not_fatal(self, collector, notifier, queue, leased_job):
        """Test a delete raising an unexpected error still reports success."""
        job = await leased_job()
        queue.delete = AsyncMock(side_effect=RuntimeError("socket closed"))

        reported = await collector.handle(success(job))

        assert reported.status == JobCompleteStatus.SUCCESS
        assert notifier.sent[0].status == JobCompleteStatus.SUCCESS


class TestResultCollectorLoop:
    """Tests for the collector's draining loop."""

    @pytest.mark.asyncio
    async def test_drains_until_closed(self, collector, notifier, leased_job):
        """Test every result is settled before wait_until_done returns."""
        results: Channel[JobResult] = Channel(2)
        collector.start(results)

        for i in range(5):
            job = await leased_job(key=f"doc{i}.txt")
            await results.put(success(job))
        await results.close()

        await asyncio.wait_for(collector.wait_until_done(), timeout=5)

        assert [m.job.key for m in notifier.sent] == [f"doc{i}.txt" for i in range(5)]

    @pytest.mark.asyncio
    async def test_keeps_draining_when_notifier_raises(self, collector, notifier, leased_job):
        """Test an unexpected notifier error does not stop the loop."""
        notifier.send = AsyncMock(side_effect=RuntimeError("boom"))
        results: Channel[JobResult] = Channel(1)
        collector.start(results)

        for i in range(4):
            job = await leased_job(key=f"doc{i}.txt")
            await asyncio.wait_for(results.put(success(job)), timeout=1)
        await results.close()

        await asyncio.wait_for(collector.wait_until_done(), timeout=5)

        assert notifier.send.await_count == 4

    @pytest.mark.asyncio
    async def test_start_twice(self, collector):
        results: Channel[JobResult] = Channel(1)
        collector.start(results)

        with pytest.raises(RuntimeError):
            collector.start(results)

        await results.close()
        await collector.wait_until_done()
