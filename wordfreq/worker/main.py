"""
Worker process entry point.

Reads job messages created by storage upload notifications, counts the
top words of each uploaded object, records successful results to DynamoDB
and reports every job's status to the result queue.

Required environment: WORKER_QUEUE_URL, WORKER_RESULT_QUEUE_URL,
WORKER_RESULT_TABLENAME, and AWS_REGION unless the region can be resolved
from the AWS config chain. See wordfreq.config for the optional settings.
"""

import asyncio
import logging
import signal
import sys

from pydantic import ValidationError

from wordfreq.aws import get_dynamodb_client, get_s3_client, get_sqs_client, resolve_region
from wordfreq.config import Settings, get_settings
from wordfreq.errors import ConfigurationError
from wordfreq.observability.logging import setup_logging
from wordfreq.observability.metrics import setup_metrics
from wordfreq.observability.tracing import setup_tracing, shutdown_tracing
from wordfreq.queue.sqs import SQSMessageQueue
from wordfreq.storage.dynamodb import DynamoDBResultRecorder
from wordfreq.storage.notifier import SQSResultNotifier
from wordfreq.storage.s3 import S3ContentFetcher
from wordfreq.worker.pipeline import Pipeline

logger = logging.getLogger(__name__)


def build_pipeline(settings: Settings, region: str) -> Pipeline:
    """Wire the pipeline to its AWS backends."""
    sqs = get_sqs_client(region)
    queue = SQSMessageQueue(
        sqs,
        settings.worker_queue_url,
        visibility_timeout=settings.worker_message_visibility,
        wait_time_seconds=settings.worker_queue_wait_seconds,
        max_messages=settings.worker_max_messages,
    )
    return Pipeline(
        queue=queue,
        fetcher=S3ContentFetcher(get_s3_client, default_region=region),
        recorder=DynamoDBResultRecorder(get_dynamodb_client(region), settings.worker_result_tablename),
        notifier=SQSResultNotifier(sqs, settings.worker_result_queue_url),
        num_workers=settings.num_workers,
        job_channel_size=settings.worker_job_channel_size,
        result_channel_size=settings.worker_result_channel_size,
        receive_backoff_seconds=settings.worker_receive_backoff_seconds,
        top_words=settings.worker_top_words,
    )


def install_signal_handlers(stop: asyncio.Event) -> None:
    """Translate SIGINT/SIGTERM into the pipeline's stop event."""
    loop = asyncio.get_running_loop()

    def _on_signal(sig: signal.Signals) -> None:
        if not stop.is_set():
            logger.info("Received signal, exiting", extra={"signal": sig.name})
            stop.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, _on_signal, sig)


async def run_async(settings: Settings) -> None:
    """Run the worker asynchronously."""
    region = resolve_region(settings.aws_region)
    if not region:
        raise ConfigurationError("region not specified, set AWS_REGION")

    setup_metrics(settings.prometheus_port)
    if settings.otel_enabled:
        setup_tracing(settings.otel_service_name, settings.otel_exporter_otlp_endpoint)

    stop = asyncio.Event()
    install_signal_handlers(stop)

    pipeline = build_pipeline(settings, region)
    try:
        await pipeline.run(stop)
    finally:
        shutdown_tracing()


def run() -> None:
    """Run the worker."""
    try:
        settings = get_settings()
    except ValidationError as e:
        setup_logging()
        logger.error("Unable to get config", extra={"error": str(e)})
        sys.exit(1)

    setup_logging(settings.log_level, settings.log_format)
    logger.info(
        "Worker service starting",
        extra={"queue_url": settings.worker_queue_url, "workers": settings.num_workers},
    )

    try:
        asyncio.run(run_async(settings))
    except ConfigurationError as e:
        logger.error("Unable to get config", extra={"error": str(e)})
        sys.exit(1)


if __name__ == "__main__":
    run()
