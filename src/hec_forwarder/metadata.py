from __future__ import annotations

import json
import logging
import time
from datetime import datetime, timezone
from typing import Any

from hec_forwarder.models import EventMetadata, OutboundMessage

LOGGER = logging.getLogger(__name__)


def now_s() -> float:
    return time.time()


def epoch_seconds(value: Any) -> float:
    """Convert an entry timestamp to epoch seconds.

    ISO-8601 strings (a trailing ``Z`` is accepted) are read as UTC when they
    carry no offset. Numbers are taken as epoch seconds already. Anything else
    falls back to the current time.
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)

    if isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            parsed = None
        if parsed is not None:
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed.timestamp()

    LOGGER.warning("entry_timestamp_unparseable", extra={"value": repr(value)})
    return now_s()


def serialize_entry(entry: Any) -> str:
    return json.dumps(entry, separators=(",", ":"), ensure_ascii=False, default=str)


def build_message(
    entry: Any,
    *,
    time_s: float,
    host: str,
    source: str,
    sourcetype: str,
    index: str | None = None,
) -> OutboundMessage:
    return OutboundMessage(
        content=serialize_entry(entry),
        metadata=EventMetadata(
            time=time_s,
            host=host,
            source=source,
            sourcetype=sourcetype,
            index=index,
        ),
    )
