"""
Unit tests for the job message listener.
"""

import asyncio

import pytest

from tests.helpers import notification_body, wait_until
from wordfreq.channel import Channel
from wordfreq.queue.listener import JobMessageListener
from wordfreq.types.job import Job


@pytest.fixture
def jobs() -> Channel[Job]:
    return Channel(10)


class TestJobMessageListener:
    """Tests for JobMessageListener.listen."""

    @pytest.mark.asyncio
    async def test_decodes_messages_onto_channel(self, queue, jobs):
        """Test each record of each message becomes a job."""
        queue.send(notification_body(("us-west-2", "b", "one.txt")))
        queue.send(notification_body(("us-west-2", "b", "two.txt"), ("us-west-2", "b", "three.txt")))
        stop = asyncio.Event()
        listener = JobMessageListener(queue, jobs, backoff_seconds=0.01)

        task = asyncio.create_task(listener.listen(stop))
        await wait_until(lambda: jobs.qsize() == 3)
        stop.set()
        await asyncio.wait_for(task, timeout=2)

        received = [job async for job in jobs]
        assert [j.location.key for j in received] == ["one.txt", "two.txt", "three.txt"]
        assert all(j.lease_seconds == queue.visibility_timeout for j in received)
        assert jobs.closed

    @pytest.mark.asyncio
    async def test_poison_message_deleted(self, queue, jobs):
        """Test an undecodable message is discarded and the next one still processed."""
        poison_id = queue.send("this is not json")
        empty_id = queue.send('{"Event": "ObjectCreated", "Records": []}')
        queue.send(notification_body(("us-west-2", "b", "good.txt")))
        stop = asyncio.Event()

        task = asyncio.create_task(JobMessageListener(queue, jobs).listen(stop))
        await wait_until(lambda: jobs.qsize() == 1)
        stop.set()
        await asyncio.wait_for(task, timeout=2)

        assert queue.deleted == [poison_id, empty_id]
        assert (await jobs.get()).location.key == "good.txt"

    @pytest.mark.asyncio
    async def test_backs_off_on_receive_error(self, queue, jobs):
        """Test transient receive failures are retried rather than fatal."""
        queue.faults.receive = 2
        queue.send(notification_body(("us-west-2", "b", "k.txt")))
        stop = asyncio.Event()

        task = asyncio.create_task(JobMessageListener(queue, jobs, backoff_seconds=0.01).listen(stop))
        await wait_until(lambda: jobs.qsize() == 1)
        stop.set()
        await asyncio.wait_for(task, timeout=2)

        assert queue.receive_calls >= 3
        assert queue.faults.receive == 0

    @pytest.mark.asyncio
    async def test_stop_interrupts_backoff(self, queue, jobs):
        """Test shutdown does not wait out the backoff interval."""
        queue.faults.receive = 1000
        stop = asyncio.Event()

        task = asyncio.create_task(JobMessageListener(queue, jobs, backoff_seconds=60).listen(stop))
        await wait_until(lambda: queue.receive_calls >= 1)
        stop.set()

        await asyncio.wait_for(task, timeout=1)
        assert jobs.closed

    @pytest.mark.asyncio
    async def test_stopped_listener_receives_nothing(self, queue, jobs):
        """Test a listener stopped before starting only closes the channel."""
        queue.send(notification_body(("us-west-2", "b", "k.txt")))
        stop = asyncio.Event()
        stop.set()

        await JobMessageListener(queue, jobs).listen(stop)

        assert queue.receive_calls == 0
        assert jobs.closed
        assert len(queue) == 1
