"""
Amazon S3 content fetcher.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator, Callable
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from wordfreq.constants import READ_CHUNK_SIZE
from wordfreq.errors import FetchError
from wordfreq.storage.base import ContentFetcher
from wordfreq.types.job import JobLocation

logger = logging.getLogger(__name__)


class S3ContentFetcher(ContentFetcher):
    """
    Streams objects from S3.

    Each job names the region its bucket lives in, so a client is obtained
    per region from the factory; records without a region use the default.
    """

    def __init__(
        self,
        client_factory: Callable[[str | None], Any],
        default_region: str | None = None,
        chunk_size: int = READ_CHUNK_SIZE,
    ):
        self._client_factory = client_factory
        self._default_region = default_region
        self._chunk_size = chunk_size

    async def get(self, location: JobLocation) -> AsyncGenerator[bytes, None]:
        client = self._client_factory(location.region or self._default_region)
        try:
            response = await asyncio.to_thread(
                client.get_object,
                Bucket=location.bucket,
                Key=location.key,
            )
        except (BotoCoreError, ClientError) as e:
            raise FetchError(f"get object {location.filename} failed: {e}") from e

        logger.debug(
            "Opened object",
            extra={"bucket": location.bucket, "key": location.key, "size": response.get("ContentLength")},
        )
        return self._stream(response["Body"])

    async def _stream(self, body: Any) -> AsyncGenerator[bytes, None]:
        try:
            while True:
                chunk = await asyncio.to_thread(body.read, self._chunk_size)
                if not chunk:
                    return
                yield chunk
        finally:
            body.close()
