"""
Creates the table the worker records results to.

Usage:
    wordfreq-create-table <tablename>

The region and credentials come from the standard AWS environment.
"""

import argparse
import logging
import sys

from botocore.exceptions import BotoCoreError, ClientError

from wordfreq.aws import get_dynamodb_client
from wordfreq.observability.logging import setup_logging
from wordfreq.storage.dynamodb import create_result_table

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="wordfreq-create-table",
        description="Create the DynamoDB table word frequency results are recorded to.",
    )
    parser.add_argument("tablename", help="name of the table to create")
    args = parser.parse_args(argv)

    setup_logging(log_format="console")
    try:
        create_result_table(get_dynamodb_client(), args.tablename)
    except (BotoCoreError, ClientError) as e:
        logger.error("Failed to create table", extra={"table": args.tablename, "error": str(e)})
        return 1

    print(f"successfully created {args.tablename}")
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
