"""
Job message decoding.

A storage notification may batch several object events; each one becomes
its own job so any worker can pick it up.
"""

import logging

from pydantic import ValidationError

from wordfreq.errors import DecodeError
from wordfreq.types.events import S3EventNotification
from wordfreq.types.job import Job, JobLocation, RawMessage, utcnow

logger = logging.getLogger(__name__)


def decode_job_message(message: RawMessage, lease_seconds: int) -> list[Job]:
    """
    Decode a notification message into jobs.

    Args:
        message: The queue delivery carrying the notification.
        lease_seconds: Lease the message was received with.

    Returns:
        One job per event record, each with its own start timestamp.

    Raises:
        DecodeError: If the body is not a valid notification, or names
            no records.
    """
    try:
        notification = S3EventNotification.model_validate_json(message.body)
    except ValidationError as e:
        raise DecodeError(f"parse storage event message {message.id}: {e}") from e

    if not notification.records:
        raise DecodeError(f"message {message.id} does not have any records")

    jobs = [
        Job(
            origin=message,
            location=JobLocation(
                region=record.aws_region,
                bucket=record.s3.bucket.name,
                key=record.s3.object_.key,
            ),
            lease_seconds=lease_seconds,
            started_at=utcnow(),
        )
        for record in notification.records
    ]

    logger.debug(
        "Decoded job message",
        extra={"message_id": message.id, "event": notification.event, "jobs": len(jobs)},
    )
    return jobs
