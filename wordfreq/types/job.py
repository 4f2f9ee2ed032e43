"""
Job-related type definitions for internal use.
"""

import posixpath
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone

from wordfreq.constants import JobCompleteStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RawMessage:
    """
    One delivery of a message from the durable queue.

    The receipt handle is the only capability needed to delete the message
    or extend its lease.
    """

    id: str
    receipt_handle: str
    body: str


@dataclass(frozen=True)
class JobLocation:
    """Where the object a job analyzes lives."""

    region: str
    bucket: str
    key: str

    @property
    def filename(self) -> str:
        """Bucket and key joined as a clean path, the durable record's key."""
        return posixpath.normpath(f"{self.bucket}/{self.key}")


@dataclass
class Job:
    """
    One object to fetch and analyze.

    Owned by exactly one worker while processed, so the lease is tracked
    without locking. lease_seconds only ever grows.
    """

    origin: RawMessage
    location: JobLocation
    lease_seconds: int
    started_at: datetime = field(default_factory=utcnow)

    @property
    def message_id(self) -> str:
        return self.origin.id

    @property
    def receipt_handle(self) -> str:
        return self.origin.receipt_handle

    def elapsed(self, now: datetime | None = None) -> timedelta:
        """Time since the job was decoded."""
        return (now or utcnow()) - self.started_at

    def lease_half_elapsed(self, now: datetime | None = None) -> bool:
        """Check if more than half of the current lease has been used."""
        return self.elapsed(now) > timedelta(seconds=self.lease_seconds / 2)

    def add_lease(self, seconds: int) -> None:
        """Record a lease extension of the given duration."""
        if seconds <= 0:
            raise ValueError(f"lease extension must be positive, got {seconds}")
        self.lease_seconds += seconds


@dataclass(frozen=True)
class Word:
    """A word and how many times it occurred."""

    word: str
    count: int


@dataclass(frozen=True)
class JobResult:
    """
    Outcome of processing one job.

    Created once per job by a worker. The collector never mutates a result;
    amending the status produces a copy.
    """

    job: Job
    status: JobCompleteStatus
    words: tuple[Word, ...] = ()
    duration: timedelta = timedelta(0)
    status_message: str = ""

    @classmethod
    def success(cls, job: Job, words: list[Word] | tuple[Word, ...], duration: timedelta) -> "JobResult":
        return cls(
            job=job,
            status=JobCompleteStatus.SUCCESS,
            words=tuple(words),
            duration=duration,
        )

    @classmethod
    def failure(cls, job: Job, message: str, duration: timedelta) -> "JobResult":
        return cls(
            job=job,
            status=JobCompleteStatus.FAILURE,
            duration=duration,
            status_message=message,
        )

    @property
    def is_success(self) -> bool:
        return self.status == JobCompleteStatus.SUCCESS

    def as_failure(self, message: str) -> "JobResult":
        """Return a copy demoted to FAILURE with the given message."""
        return replace(self, status=JobCompleteStatus.FAILURE, status_message=message)
