from __future__ import annotations

import logging
from typing import Any, Literal
from urllib.parse import unquote_plus

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from hec_forwarder.errors import InvalidEventError

LOGGER = logging.getLogger(__name__)

ChangeOperation = Literal["INSERT", "MODIFY", "REMOVE"]


class ChangeRecord(BaseModel):
    """Single row-level change taken from a DynamoDB stream batch."""

    model_config = ConfigDict(frozen=True)

    event_id: str | None = None
    operation: ChangeOperation
    body: dict[str, Any] = Field(repr=False)


class ChangeStreamEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    records: list[ChangeRecord]


class StorageNotificationEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    bucket: str
    key: str
    size: int | None = None
    event_name: str | None = None


def parse_change_stream_event(payload: Any) -> ChangeStreamEvent:
    records = _records_of(payload)

    parsed: list[ChangeRecord] = []
    for position, record in enumerate(records):
        if not isinstance(record, dict):
            raise InvalidEventError(f"Change record {position} is not an object")

        change = record.get("dynamodb")
        if not isinstance(change, dict):
            raise InvalidEventError(f"Change record {position} has no 'dynamodb' body")

        try:
            parsed.append(
                ChangeRecord(
                    event_id=record.get("eventID"),
                    operation=record.get("eventName"),
                    body=record,
                )
            )
        except ValidationError as exc:
            raise InvalidEventError(f"Change record {position} is malformed: {exc}") from exc

    return ChangeStreamEvent(records=parsed)


def parse_storage_notification(payload: Any) -> StorageNotificationEvent:
    records = _records_of(payload)
    if not records:
        raise InvalidEventError("Storage notification contains no records")
    if len(records) > 1:
        LOGGER.warning(
            "storage_notification_extra_records_ignored",
            extra={"record_count": len(records)},
        )

    first = records[0]
    try:
        s3 = first["s3"]
        bucket = s3["bucket"]["name"]
        raw_key = s3["object"]["key"]
    except (KeyError, TypeError) as exc:
        raise InvalidEventError("Storage notification is missing bucket or key") from exc

    if not isinstance(bucket, str) or not isinstance(raw_key, str):
        raise InvalidEventError("Storage notification bucket and key must be strings")

    try:
        return StorageNotificationEvent(
            bucket=bucket,
            # Keys arrive URL-encoded with spaces as '+'.
            key=unquote_plus(raw_key),
            size=s3["object"].get("size"),
            event_name=first.get("eventName"),
        )
    except ValidationError as exc:
        raise InvalidEventError(f"Storage notification is malformed: {exc}") from exc


def _records_of(payload: Any) -> list[Any]:
    if not isinstance(payload, dict):
        raise InvalidEventError("Trigger payload must be an object")

    records = payload.get("Records", [])
    if not isinstance(records, list):
        raise InvalidEventError("Trigger payload 'Records' must be a list")
    return records
