"""
Uploads a file to S3 so the worker will process it.

Usage:
    wordfreq-upload <bucket> <filename>

If WORKER_RESULT_QUEUE_URL is set the client then waits for the job's
status message on the result queue and prints it.
"""

import argparse
import logging
import os
import sys
import time
from datetime import timedelta
from typing import Any

from boto3.exceptions import S3UploadFailedError
from boto3.s3.transfer import TransferConfig
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from wordfreq.aws import get_s3_client, get_sqs_client
from wordfreq.constants import JobCompleteStatus, RESULT_POLL_BACKOFF_SECONDS, RESULT_POLL_WAIT_SECONDS
from wordfreq.observability.logging import setup_logging
from wordfreq.types.events import JobResultMessage

logger = logging.getLogger(__name__)


class UploadSettings(BaseSettings):
    """Optional environment for the upload client."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    worker_result_queue_url: str | None = None
    aws_region: str | None = None


def format_duration(duration: timedelta) -> str:
    """
    Format a duration, dropping precision that doesn't matter at its scale.

    Minutes are shown to the second, seconds to the millisecond and
    milliseconds to the microsecond.
    """
    micros = duration // timedelta(microseconds=1)
    if duration > timedelta(minutes=1):
        total = micros // 1_000_000
        hours, rest = divmod(total, 3600)
        minutes, seconds = divmod(rest, 60)
        if hours:
            return f"{hours}h{minutes}m{seconds}s"
        return f"{minutes}m{seconds}s"
    if duration > timedelta(seconds=1):
        return f"{micros // 1000 / 1000:g}s"
    if duration > timedelta(milliseconds=1):
        return f"{micros / 1000:g}ms"
    return f"{micros}µs"


def format_result(result: JobResultMessage) -> str:
    lines = [
        f"Job Results completed in {format_duration(result.elapsed)} "
        f"for {result.job.bucket}/{result.job.key}"
    ]
    if result.status == JobCompleteStatus.FAILURE:
        lines.append(f"Failed: {result.status_message}")
        return "\n".join(lines)

    lines.append("Top Words:")
    for w in result.words:
        sep = "\t\t" if len(w.word) <= 5 else "\t"
        lines.append(f"- {w.word}{sep}{w.count}")
    return "\n".join(lines)


def match_result(body: str, bucket: str, key: str) -> JobResultMessage | None:
    """
    Parse a result queue message and check it is for the given object.

    Returns:
        The result if it matches, otherwise None.
    """
    try:
        result = JobResultMessage.model_validate_json(body)
    except ValidationError as e:
        logger.warning("Failed to unmarshal message", extra={"error": str(e)})
        return None
    if result.job.bucket != bucket or result.job.key != key:
        return None
    return result


def wait_for_result(sqs: Any, bucket: str, key: str, queue_url: str) -> JobResultMessage:
    """
    Poll the result queue until the status of the uploaded object arrives.

    Messages about other objects are left with visibility 0 so the clients
    waiting for them see them straight away. The matching message is
    deleted.
    """
    while True:
        try:
            response = sqs.receive_message(
                QueueUrl=queue_url,
                VisibilityTimeout=0,
                WaitTimeSeconds=RESULT_POLL_WAIT_SECONDS,
            )
        except (BotoCoreError, ClientError) as e:
            logger.warning("Failed to receive message", extra={"error": str(e)})
            time.sleep(RESULT_POLL_BACKOFF_SECONDS)
            continue

        for msg in response.get("Messages", []):
            result = match_result(msg.get("Body", ""), bucket, key)
            if result is None:
                continue
            try:
                sqs.delete_message(QueueUrl=queue_url, ReceiptHandle=msg["ReceiptHandle"])
            except (BotoCoreError, ClientError) as e:
                logger.warning("Failed to delete result message", extra={"error": str(e)})
            return result


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="wordfreq-upload",
        description="Upload a file for word frequency processing.",
    )
    parser.add_argument("bucket", help="bucket the worker's notifications are configured on")
    parser.add_argument("filename", help="file to upload; its base name becomes the key")
    args = parser.parse_args(argv)

    setup_logging(log_format="console")
    settings = UploadSettings()
    key = os.path.basename(args.filename)

    if not os.path.isfile(args.filename):
        logger.error("Failed to open file", extra={"filename": args.filename})
        return 1

    print("Uploading file to S3...")
    s3 = get_s3_client(settings.aws_region)
    try:
        s3.upload_file(args.filename, args.bucket, key, Config=TransferConfig(use_threads=True))
    except (BotoCoreError, ClientError, S3UploadFailedError) as e:
        logger.error("Upload failed", extra={"error": str(e)})
        return 1
    print(f"Successfully uploaded {args.filename} to s3://{args.bucket}/{key}")

    if settings.worker_result_queue_url:
        print("Waiting for results...")
        result = wait_for_result(
            get_sqs_client(settings.aws_region),
            args.bucket,
            key,
            settings.worker_result_queue_url,
        )
        print(format_result(result))
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
