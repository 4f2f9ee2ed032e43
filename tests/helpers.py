"""
Helpers shared by the test modules.
"""

import asyncio
import json
from collections.abc import AsyncIterator, Callable


def notification_body(*records: tuple[str, str, str], event: str = "ObjectCreated") -> str:
    """Build a storage notification naming (region, bucket, key) records."""
    return json.dumps(
        {
            "Event": event,
            "Records": [
                {
                    "awsRegion": region,
                    "EventName": "ObjectCreated:Put",
                    "S3": {"Bucket": {"Name": bucket}, "Object": {"Key": key}},
                }
                for region, bucket, key in records
            ],
        }
    )


async def stream_of(*chunks: bytes) -> AsyncIterator[bytes]:
    """Async byte stream over the given chunks."""
    for chunk in chunks:
        yield chunk


async def wait_until(predicate: Callable[[], bool], timeout: float = 5.0) -> None:
    """Poll until the predicate holds, failing the test on timeout."""
    async def _poll() -> None:
        while not predicate():
            await asyncio.sleep(0.01)

    await asyncio.wait_for(_poll(), timeout=timeout)
