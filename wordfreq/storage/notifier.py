"""
SQS result notifier.
"""

import asyncio
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from wordfreq.errors import NotifyError
from wordfreq.storage.base import ResultNotifier
from wordfreq.types.events import JobResultMessage
from wordfreq.types.job import JobResult


class SQSResultNotifier(ResultNotifier):
    """Sends each job's status as a JSON message to the result queue."""

    def __init__(self, client: Any, queue_url: str):
        self._client = client
        self._queue_url = queue_url

    async def send(self, result: JobResult) -> None:
        body = JobResultMessage.from_result(result).to_json()
        try:
            await asyncio.to_thread(
                self._client.send_message,
                QueueUrl=self._queue_url,
                MessageBody=body,
            )
        except (BotoCoreError, ClientError) as e:
            raise NotifyError(f"send result to {self._queue_url} failed: {e}") from e
