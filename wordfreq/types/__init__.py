"""
Type definitions for the word frequency pipeline.
"""

from wordfreq.types.events import (
    JobResultMessage,
    JobSummary,
    ResultRecord,
    S3EventNotification,
    S3EventRecord,
    WordCount,
)
from wordfreq.types.job import (
    Job,
    JobLocation,
    JobResult,
    RawMessage,
    Word,
)

__all__ = [
    # Job types
    "RawMessage",
    "JobLocation",
    "Job",
    "Word",
    "JobResult",
    # Wire types
    "S3EventNotification",
    "S3EventRecord",
    "JobResultMessage",
    "JobSummary",
    "WordCount",
    "ResultRecord",
]
