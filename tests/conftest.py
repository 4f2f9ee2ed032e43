"""
Pytest configuration and shared fixtures.
"""

from collections.abc import Awaitable, Callable
from typing import Any

import pytest

from tests.helpers import notification_body
from wordfreq.queue.memory import InMemoryMessageQueue
from wordfreq.storage.memory import (
    InMemoryContentStore,
    InMemoryResultNotifier,
    InMemoryResultRecorder,
)
from wordfreq.types.job import Job
from wordfreq.worker.decoder import decode_job_message


@pytest.fixture
def queue() -> InMemoryMessageQueue:
    """In-memory job queue with a 60s lease."""
    return InMemoryMessageQueue(visibility_timeout=60, wait_time_seconds=0.01)


@pytest.fixture
def store() -> InMemoryContentStore:
    """In-memory object store streaming small chunks."""
    return InMemoryContentStore(chunk_size=8)


@pytest.fixture
def recorder() -> InMemoryResultRecorder:
    return InMemoryResultRecorder()


@pytest.fixture
def notifier() -> InMemoryResultNotifier:
    return InMemoryResultNotifier()


@pytest.fixture
def leased_job(queue: InMemoryMessageQueue) -> Callable[..., Awaitable[Job]]:
    """
    Factory for a job whose message is currently leased from the queue.

    The returned coroutine function sends a one-record notification,
    receives it and decodes it.
    """

    async def factory(bucket: str = "bucket", key: str = "doc.txt", region: str = "us-west-2") -> Job:
        message_id = queue.send(notification_body((region, bucket, key)))
        messages = await queue.receive()
        assert [m.id for m in messages] == [message_id]
        (job,) = decode_job_message(messages[0], queue.visibility_timeout)
        return job

    return factory


@pytest.fixture
def sample_notification() -> dict[str, Any]:
    return {
        "Event": "ObjectCreated",
        "Records": [
            {
                "awsRegion": "us-west-2",
                "S3": {"Bucket": {"Name": "b"}, "Object": {"Key": "k.txt"}},
            }
        ],
    }
