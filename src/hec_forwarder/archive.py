from __future__ import annotations

import logging

from hec_forwarder.events import StorageNotificationEvent
from hec_forwarder.metadata import build_message, epoch_seconds, now_s
from hec_forwarder.models import InvocationIdentity
from hec_forwarder.relay import BatchRelay
from hec_forwarder.settings import Settings
from hec_forwarder.storage import (
    ObjectStoreClient,
    decompress_gzip,
    fetch_object,
    parse_archive,
)

LOGGER = logging.getLogger(__name__)


async def forward_archive_object(
    event: StorageNotificationEvent,
    *,
    relay: BatchRelay,
    s3_client: ObjectStoreClient,
    settings: Settings,
    identity: InvocationIdentity,
) -> int:
    """Fetch a gzip archive, unpack its entries and forward them in one flush.

    Fetch, decompression and parse failures propagate before anything is
    enqueued, so a broken archive never produces a partial flush.
    """
    fetched = await fetch_object(s3_client, bucket=event.bucket, key=event.key)
    LOGGER.info(
        "archive_object_fetched",
        extra={
            "bucket": event.bucket,
            "key": event.key,
            "last_modified": str(fetched.last_modified),
            "content_length": fetched.content_length,
            **identity.log_context(),
        },
    )

    entries = parse_archive(
        decompress_gzip(fetched.body),
        records_field=settings.archive_records_field,
    )
    LOGGER.debug("archive_object_decoded", extra={"entry_count": len(entries)})

    time_field = settings.archive_time_field
    for entry in entries:
        timestamp = entry.get(time_field) if isinstance(entry, dict) else None
        relay.enqueue(
            build_message(
                entry,
                time_s=epoch_seconds(timestamp) if timestamp is not None else now_s(),
                host=settings.hec_host,
                source=identity.source,
                sourcetype=settings.archive_sourcetype,
                index=settings.hec_index,
            )
        )

    summary = await relay.flush()
    return summary.count
