"""
DynamoDB result recorder and table provisioning.
"""

import asyncio
import logging
from typing import Any

from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import BotoCoreError, ClientError

from wordfreq.errors import RecordError
from wordfreq.storage.base import ResultRecorder
from wordfreq.types.events import ResultRecord
from wordfreq.types.job import JobResult

logger = logging.getLogger(__name__)

HASH_KEY = "Filename"


class DynamoDBResultRecorder(ResultRecorder):
    """Writes one item per analyzed file, replacing any earlier result for it."""

    def __init__(self, client: Any, table_name: str):
        self._client = client
        self._table_name = table_name
        self._serializer = TypeSerializer()

    def to_item(self, result: JobResult) -> dict[str, Any]:
        """Serialize a result into DynamoDB attribute values."""
        record = ResultRecord.from_result(result).to_item()
        return {name: self._serializer.serialize(value) for name, value in record.items()}

    async def record(self, result: JobResult) -> None:
        item = self.to_item(result)
        try:
            await asyncio.to_thread(
                self._client.put_item,
                TableName=self._table_name,
                Item=item,
            )
        except (BotoCoreError, ClientError) as e:
            raise RecordError(f"unable to record result, {e}") from e


def create_result_table(client: Any, table_name: str) -> None:
    """
    Create the result table keyed by Filename.

    Raises:
        botocore.exceptions.ClientError: If the table could not be created.
    """
    client.create_table(
        TableName=table_name,
        AttributeDefinitions=[{"AttributeName": HASH_KEY, "AttributeType": "S"}],
        KeySchema=[{"AttributeName": HASH_KEY, "KeyType": "HASH"}],
        ProvisionedThroughput={"ReadCapacityUnits": 1, "WriteCapacityUnits": 1},
    )
    logger.info("Created result table", extra={"table": table_name})
