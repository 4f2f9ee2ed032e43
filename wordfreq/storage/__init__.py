"""
Storage collaborators: content fetching, result recording and status notification.
"""

from wordfreq.storage.base import ContentFetcher, ResultNotifier, ResultRecorder
from wordfreq.storage.dynamodb import DynamoDBResultRecorder, create_result_table
from wordfreq.storage.notifier import SQSResultNotifier
from wordfreq.storage.s3 import S3ContentFetcher

__all__ = [
    "ContentFetcher",
    "ResultRecorder",
    "ResultNotifier",
    "S3ContentFetcher",
    "DynamoDBResultRecorder",
    "SQSResultNotifier",
    "create_result_table",
]
