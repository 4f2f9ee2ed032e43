"""
Centralized AWS client factory.

Clients are created per region and reused; boto3 clients are thread-safe,
so the worker threads used for blocking calls can share them.
"""

import logging
from functools import lru_cache

import boto3
from botocore.config import Config

logger = logging.getLogger(__name__)

_CLIENT_CONFIG = Config(
    retries={"max_attempts": 3, "mode": "standard"},
    # Long polls hold the connection for up to 20 seconds.
    read_timeout=30,
    max_pool_connections=50,
)


def resolve_region(region: str | None) -> str | None:
    """Return the given region, or the one boto3 resolves from its config chain."""
    return region or boto3.session.Session().region_name


@lru_cache
def get_sqs_client(region: str | None = None):
    """Get an SQS client for the region."""
    client = boto3.client("sqs", region_name=region, config=_CLIENT_CONFIG)
    logger.info("SQS client initialized", extra={"region": client.meta.region_name})
    return client


@lru_cache
def get_s3_client(region: str | None = None):
    """Get an S3 client for the region."""
    client = boto3.client("s3", region_name=region, config=_CLIENT_CONFIG)
    logger.info("S3 client initialized", extra={"region": client.meta.region_name})
    return client


@lru_cache
def get_dynamodb_client(region: str | None = None):
    """Get a DynamoDB client for the region."""
    client = boto3.client("dynamodb", region_name=region, config=_CLIENT_CONFIG)
    logger.info("DynamoDB client initialized", extra={"region": client.meta.region_name})
    return client
