"""
Message queue adapters and the job message listener.
"""

from wordfreq.queue.base import MessageQueue
from wordfreq.queue.memory import InMemoryMessageQueue
from wordfreq.queue.sqs import SQSMessageQueue

__all__ = [
    "MessageQueue",
    "SQSMessageQueue",
    "InMemoryMessageQueue",
]
