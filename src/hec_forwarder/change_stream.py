from __future__ import annotations

import logging
from collections import Counter

from hec_forwarder.events import ChangeStreamEvent
from hec_forwarder.metadata import build_message, now_s
from hec_forwarder.models import InvocationIdentity
from hec_forwarder.relay import BatchRelay
from hec_forwarder.settings import Settings

LOGGER = logging.getLogger(__name__)


async def forward_change_records(
    event: ChangeStreamEvent,
    *,
    relay: BatchRelay,
    settings: Settings,
    identity: InvocationIdentity,
) -> int:
    """Send every change record in the batch to the collector with one flush."""
    for record in event.records:
        relay.enqueue(
            build_message(
                record.body,
                time_s=now_s(),
                host=settings.hec_host,
                source=identity.source,
                sourcetype=settings.change_record_sourcetype,
                index=settings.hec_index,
            )
        )

    LOGGER.info(
        "change_records_enqueued",
        extra={
            "count": len(event.records),
            "operations": dict(Counter(record.operation for record in event.records)),
            "event_ids": [record.event_id for record in event.records],
            **identity.log_context(),
        },
    )
    summary = await relay.flush()
    return summary.count
