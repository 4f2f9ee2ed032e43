"""
Error taxonomy for the job pipeline.

Backend adapters translate SDK errors into these types at the boundary,
so pipeline stages only ever handle the cases below.
"""


class WordFreqError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(WordFreqError):
    """Startup configuration is missing or invalid."""


class TransientQueueError(WordFreqError):
    """A queue receive, delete or lease-extend call failed at the service layer."""


class DecodeError(WordFreqError):
    """A notification body is malformed or names no records."""


class LeaseExtendError(WordFreqError):
    """Renewing a job message's lease failed mid-computation."""


class FetchError(WordFreqError):
    """Object content could not be retrieved or read from storage."""


class RecordError(WordFreqError):
    """A successful result could not be written durably."""


class NotifyError(WordFreqError):
    """A status notification could not be sent."""
