from __future__ import annotations

import asyncio
import gzip
import json
import logging
import zlib
from datetime import datetime
from typing import Any, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import BaseModel, ConfigDict

from hec_forwarder.errors import DecompressionError, FetchError, ParseError

LOGGER = logging.getLogger(__name__)


class ObjectStoreClient(Protocol):
    def get_object(self, *, Bucket: str, Key: str) -> dict[str, Any]:
        ...


class FetchedObject(BaseModel):
    model_config = ConfigDict(frozen=True)

    body: bytes
    last_modified: datetime | None = None
    content_length: int | None = None


def create_s3_client(*, region_name: str | None = None) -> ObjectStoreClient:
    return boto3.client("s3", region_name=region_name)


async def fetch_object(client: ObjectStoreClient, *, bucket: str, key: str) -> FetchedObject:
    return await asyncio.to_thread(_fetch_object_sync, client, bucket, key)


def _fetch_object_sync(client: ObjectStoreClient, bucket: str, key: str) -> FetchedObject:
    message = (
        f"Error getting object {key} from bucket {bucket}. Make sure they exist "
        "and your bucket is in the same region as this function."
    )
    try:
        response = client.get_object(Bucket=bucket, Key=key)
        body = response["Body"].read()
    except ClientError as exc:
        error_code = exc.response.get("Error", {}).get("Code")
        raise FetchError(message, bucket=bucket, key=key, error_code=error_code) from exc
    except BotoCoreError as exc:
        raise FetchError(message, bucket=bucket, key=key) from exc

    return FetchedObject(
        body=body,
        last_modified=response.get("LastModified"),
        content_length=response.get("ContentLength", len(body)),
    )


def decompress_gzip(data: bytes) -> bytes:
    # gzip.decompress accepts an empty buffer; a zero-byte archive is truncated.
    if not data:
        raise DecompressionError("Archive is empty, expected gzip data")
    try:
        return gzip.decompress(data)
    except (gzip.BadGzipFile, zlib.error, EOFError) as exc:
        raise DecompressionError(f"Archive is not valid gzip data: {exc}") from exc


def parse_archive(data: bytes, *, records_field: str) -> list[Any]:
    """Decode an archive document and return the entries under ``records_field``.

    A document without the field holds no entries.
    """
    try:
        document = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ParseError(f"Archive is not valid JSON: {exc}") from exc

    if not isinstance(document, dict):
        raise ParseError("Archive document must be a JSON object")

    entries = document.get(records_field)
    if entries is None:
        return []
    if not isinstance(entries, list):
        raise ParseError(f"Archive field {records_field!r} must be a list")
    return entries
