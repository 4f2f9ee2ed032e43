"""
Interfaces for the collaborators the pipeline depends on.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncGenerator

from wordfreq.types.job import JobLocation, JobResult


class ContentFetcher(ABC):
    """Streams object content from blob storage."""

    @abstractmethod
    async def get(self, location: JobLocation) -> AsyncGenerator[bytes, None]:
        """
        Open an object for streaming.

        Returns:
            An async iterator over the object's content in chunks.

        Raises:
            FetchError: If the object could not be retrieved.
        """


class ResultRecorder(ABC):
    """Durably records successful job results."""

    @abstractmethod
    async def record(self, result: JobResult) -> None:
        """
        Write a result keyed by its bucket/key filename.

        Raises:
            RecordError: If the write failed.
        """


class ResultNotifier(ABC):
    """Publishes the status of every job."""

    @abstractmethod
    async def send(self, result: JobResult) -> None:
        """
        Send a status notification for a result.

        Raises:
            NotifyError: If the notification could not be sent.
        """
