"""
In-memory storage collaborators for tests and local runs.
"""

from collections.abc import AsyncGenerator

from wordfreq.errors import FetchError, NotifyError, RecordError
from wordfreq.storage.base import ContentFetcher, ResultNotifier, ResultRecorder
from wordfreq.types.events import JobResultMessage, ResultRecord
from wordfreq.types.job import JobLocation, JobResult


class InMemoryContentStore(ContentFetcher):
    """Objects held as bytes, streamed back in fixed-size chunks."""

    def __init__(self, chunk_size: int = 16):
        self._chunk_size = chunk_size
        self._objects: dict[tuple[str, str], bytes] = {}
        self._broken: dict[tuple[str, str], int] = {}
        self.fetched: list[JobLocation] = []

    def put(self, bucket: str, key: str, content: bytes | str) -> None:
        if isinstance(content, str):
            content = content.encode("utf-8")
        self._objects[(bucket, key)] = content

    def break_after(self, bucket: str, key: str, chunks: int) -> None:
        """Make reads of an object fail after the given number of chunks."""
        self._broken[(bucket, key)] = chunks

    async def get(self, location: JobLocation) -> AsyncGenerator[bytes, None]:
        self.fetched.append(location)
        content = self._objects.get((location.bucket, location.key))
        if content is None:
            raise FetchError(f"get object {location.filename} failed: NoSuchKey")
        return self._stream(content, self._broken.get((location.bucket, location.key)))

    async def _stream(self, content: bytes, fail_after: int | None) -> AsyncGenerator[bytes, None]:
        for n, start in enumerate(range(0, len(content), self._chunk_size)):
            if fail_after is not None and n >= fail_after:
                raise ConnectionResetError("connection reset while reading object")
            yield content[start:start + self._chunk_size]


class InMemoryResultRecorder(ResultRecorder):
    """Keeps recorded items by filename."""

    def __init__(self):
        self.records: dict[str, ResultRecord] = {}
        self.failures = 0
        self.calls = 0

    async def record(self, result: JobResult) -> None:
        self.calls += 1
        if self.failures > 0:
            self.failures -= 1
            raise RecordError("unable to record result, injected failure")
        record = ResultRecord.from_result(result)
        self.records[record.filename] = record


class InMemoryResultNotifier(ResultNotifier):
    """Collects sent status messages in order."""

    def __init__(self):
        self.sent: list[JobResultMessage] = []
        self.failures = 0
        self.calls = 0

    async def send(self, result: JobResult) -> None:
        self.calls += 1
        if self.failures > 0:
            self.failures -= 1
            raise NotifyError("injected notify failure")
        self.sent.append(JobResultMessage.from_result(result))
