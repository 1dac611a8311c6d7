from __future__ import annotations

import gzip
import io
import json
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

import httpx
from botocore.exceptions import ClientError

CollectorReply = httpx.Response | Exception


class RecordingCollector:
    """httpx transport handler that records requests and replays canned replies."""

    def __init__(self, replies: Sequence[CollectorReply]) -> None:
        self._replies = list(replies)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if not self._replies:
            raise AssertionError("No stubbed collector replies left")

        reply = self._replies[min(len(self.requests), len(self._replies) - 1)]
        self.requests.append(request)
        if isinstance(reply, Exception):
            raise reply
        return reply

    @property
    def calls(self) -> int:
        return len(self.requests)

    def events(self, call: int = -1) -> list[dict[str, Any]]:
        body = self.requests[call].content.decode("utf-8")
        return [json.loads(line) for line in body.splitlines() if line]


class StubS3Client:
    def __init__(
        self,
        objects: dict[tuple[str, str], bytes] | None = None,
        *,
        error: Exception | None = None,
    ) -> None:
        self._objects = dict(objects or {})
        self._error = error
        self.calls: list[tuple[str, str]] = []

    def get_object(self, *, Bucket: str, Key: str) -> dict[str, Any]:
        self.calls.append((Bucket, Key))
        if self._error is not None:
            raise self._error

        try:
            data = self._objects[(Bucket, Key)]
        except KeyError:
            raise client_error("NoSuchKey", "The specified key does not exist.") from None

        return {
            "Body": io.BytesIO(data),
            "LastModified": datetime(2017, 1, 1, tzinfo=timezone.utc),
            "ContentLength": len(data),
        }


def client_error(code: str, message: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, "GetObject")


def hec_success() -> httpx.Response:
    return httpx.Response(200, json={"text": "Success", "code": 0})


def gzip_json(document: Any) -> bytes:
    return gzip.compress(json.dumps(document).encode("utf-8"))


def storage_notification(bucket: str, key: str) -> dict[str, Any]:
    return {
        "Records": [
            {
                "eventName": "ObjectCreated:Put",
                "s3": {
                    "bucket": {"name": bucket},
                    "object": {"key": key, "size": 123},
                },
            }
        ]
    }


def change_record(operation: str, item_id: str) -> dict[str, Any]:
    image = {"id": {"S": item_id}, "status": {"S": "active"}}
    change: dict[str, Any] = {"Keys": {"id": {"S": item_id}}, "SequenceNumber": "111"}
    if operation in ("INSERT", "MODIFY"):
        change["NewImage"] = image
    if operation in ("MODIFY", "REMOVE"):
        change["OldImage"] = image
    return {
        "eventID": f"evt-{item_id}",
        "eventName": operation,
        "eventSource": "aws:dynamodb",
        "dynamodb": change,
    }
