"""
Streaming word frequency counting.

Words are split on whitespace, lower-cased and trimmed of surrounding
punctuation; words shorter than five characters are not counted. While a
large object is streamed the job's queue lease is kept alive so the message
is not redelivered to another worker mid-count.
"""

import codecs
import logging
from collections import Counter
from collections.abc import AsyncIterable, AsyncIterator

from wordfreq.constants import DEFAULT_TOP_WORDS, MIN_WORD_LENGTH, TRIM_CHARS
from wordfreq.errors import FetchError, LeaseExtendError, TransientQueueError
from wordfreq.observability.metrics import get_metrics
from wordfreq.queue.base import MessageQueue
from wordfreq.types.job import Job, Word

logger = logging.getLogger(__name__)


def clean_token(token: str) -> str | None:
    """
    Normalize a raw token.

    Returns:
        The counted form of the token, or None if it is too short.
    """
    word = token.lower().strip(TRIM_CHARS)
    if len(word) < MIN_WORD_LENGTH:
        return None
    return word


async def iter_tokens(stream: AsyncIterable[bytes]) -> AsyncIterator[str]:
    """
    Split a UTF-8 byte stream into whitespace separated tokens.

    Any Unicode whitespace separates tokens, including no-break and em
    spaces. Tokens and multi-byte characters may straddle chunk boundaries;
    the partial tail of each chunk is carried into the next. Invalid bytes
    decode to U+FFFD.
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    pending = ""
    async for chunk in stream:
        if not chunk:
            continue
        text = pending + decoder.decode(chunk)
        parts = text.split()
        if parts and not text[-1].isspace():
            pending = parts.pop()
        else:
            pending = ""
        for part in parts:
            yield part
    for part in (pending + decoder.decode(b"", final=True)).split():
        yield part


def top_words(counts: dict[str, int], top: int = DEFAULT_TOP_WORDS) -> list[Word]:
    """
    Rank counted words by count descending, ties broken alphabetically.

    Returns:
        At most `top` words; all of them if fewer were counted.
    """
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [Word(word=word, count=count) for word, count in ranked[:top]]


class WordCounter:
    """
    Counts the top words of a job's content.

    The counter extends the job's lease on the owning queue whenever more
    than half of the lease tracked so far has elapsed.
    """

    def __init__(self, queue: MessageQueue, top: int = DEFAULT_TOP_WORDS):
        self._queue = queue
        self._top = top
        self._metrics = get_metrics()

    async def count_top_words(self, stream: AsyncIterable[bytes], job: Job) -> list[Word]:
        """
        Count the words of a stream and return the most frequent.

        Args:
            stream: Object content as byte chunks.
            job: The job being processed; its lease is extended in place.

        Raises:
            FetchError: If reading the stream fails.
            LeaseExtendError: If the lease could not be renewed.
        """
        counts = await self.count_words(stream, job)
        return top_words(counts, self._top)

    async def count_words(self, stream: AsyncIterable[bytes], job: Job) -> dict[str, int]:
        counts: Counter[str] = Counter()
        try:
            async for token in iter_tokens(stream):
                word = clean_token(token)
                if word is not None:
                    counts[word] += 1
                    await self._keep_lease(job)
        except (LeaseExtendError, FetchError):
            raise
        except Exception as e:
            raise FetchError(f"failed to count words, {e}") from e
        return dict(counts)

    async def _keep_lease(self, job: Job) -> None:
        if not job.lease_half_elapsed():
            return
        try:
            added = await self._queue.extend_lease(job.receipt_handle)
        except TransientQueueError as e:
            raise LeaseExtendError(
                f"failed to update job message's visibility timeout, {e}"
            ) from e
        job.add_lease(added)
        self._metrics.record_lease_extended()
        logger.info(
            "Extended job lease",
            extra={
                "message_id": job.message_id,
                "added_seconds": added,
                "lease_seconds": job.lease_seconds,
            },
        )
