"""
Application constants.
Centralized location for all constant values used across the application.
"""

from enum import StrEnum


class JobCompleteStatus(StrEnum):
    """
    Final outcome of a job.

    A SUCCESS result may still be demoted to FAILURE by the result
    collector when recording it fails.
    """

    SUCCESS = "success"
    FAILURE = "failure"


# Default values
DEFAULT_MESSAGE_VISIBILITY_SECONDS = 60
DEFAULT_QUEUE_WAIT_SECONDS = 20
DEFAULT_RECEIVE_BACKOFF_SECONDS = 5.0
DEFAULT_CHANNEL_SIZE = 10
DEFAULT_TOP_WORDS = 10
MAX_TOP_WORDS = 10

# Word counting
MIN_WORD_LENGTH = 5
TRIM_CHARS = ".,\"'?!"
READ_CHUNK_SIZE = 64 * 1024

# Upload client
RESULT_POLL_WAIT_SECONDS = 20
RESULT_POLL_BACKOFF_SECONDS = 30.0

# Metrics names
METRIC_MESSAGES_RECEIVED = "wordfreq_messages_received_total"
METRIC_POISON_MESSAGES = "wordfreq_poison_messages_total"
METRIC_RECEIVE_ERRORS = "wordfreq_receive_errors_total"
METRIC_LEASE_EXTENDED = "wordfreq_lease_extended_total"
METRIC_JOBS_COMPLETED = "wordfreq_jobs_completed_total"
METRIC_JOB_DURATION = "wordfreq_job_duration_seconds"
METRIC_RECORD_FAILURES = "wordfreq_record_failures_total"
METRIC_DELETE_FAILURES = "wordfreq_delete_failures_total"
METRIC_NOTIFY_FAILURES = "wordfreq_notify_failures_total"

# Trace span names
SPAN_PROCESS_JOB = "process_job"
SPAN_COLLECT_RESULT = "collect_result"
