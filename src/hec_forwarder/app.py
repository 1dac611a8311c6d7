from __future__ import annotations

import asyncio
import json
import logging
import os
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Any

import httpx

from hec_forwarder.archive import forward_archive_object
from hec_forwarder.change_stream import forward_change_records
from hec_forwarder.events import parse_change_stream_event, parse_storage_notification
from hec_forwarder.models import InvocationIdentity
from hec_forwarder.relay import BatchRelay, create_http_client
from hec_forwarder.settings import Settings
from hec_forwarder.storage import ObjectStoreClient, create_s3_client

LOGGER = logging.getLogger(__name__)


def configure_logging() -> None:
    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    # The Lambda runtime installs its own root handler, which makes basicConfig a no-op.
    logging.getLogger().setLevel(level)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


@lru_cache(maxsize=1)
def get_s3_client() -> ObjectStoreClient:
    return create_s3_client(region_name=get_settings().aws_region)


@asynccontextmanager
async def _http_client(
    settings: Settings,
    http_client: httpx.AsyncClient | None,
) -> AsyncIterator[httpx.AsyncClient]:
    if http_client is not None:
        yield http_client
        return

    client = create_http_client(settings)
    try:
        yield client
    finally:
        await client.aclose()


async def run_change_stream(
    event: Any,
    *,
    settings: Settings,
    identity: InvocationIdentity,
    http_client: httpx.AsyncClient | None = None,
) -> int:
    parsed = parse_change_stream_event(event)
    async with _http_client(settings, http_client) as client:
        relay = BatchRelay.from_settings(settings, client=client)
        return await forward_change_records(
            parsed,
            relay=relay,
            settings=settings,
            identity=identity,
        )


async def run_archive_object(
    event: Any,
    *,
    settings: Settings,
    identity: InvocationIdentity,
    s3_client: ObjectStoreClient,
    http_client: httpx.AsyncClient | None = None,
) -> int:
    parsed = parse_storage_notification(event)
    async with _http_client(settings, http_client) as client:
        relay = BatchRelay.from_settings(settings, client=client)
        return await forward_archive_object(
            parsed,
            relay=relay,
            s3_client=s3_client,
            settings=settings,
            identity=identity,
        )


def _invoke(
    trigger: str,
    event: Any,
    identity: InvocationIdentity,
    run: Callable[[Settings], Awaitable[int]],
) -> int:
    LOGGER.info("invocation_received", extra={"trigger": trigger, **identity.log_context()})
    LOGGER.debug("invocation_event", extra={"event": json.dumps(event, default=str)})

    try:
        count = asyncio.run(run(get_settings()))
    except Exception as exc:
        LOGGER.exception(
            "invocation_failed",
            extra={
                "trigger": trigger,
                "error_type": type(exc).__name__,
                **identity.log_context(),
            },
        )
        raise

    LOGGER.info(
        "invocation_succeeded",
        extra={"trigger": trigger, "count": count, **identity.log_context()},
    )
    return count


def change_stream_handler(event: Any, context: Any) -> int:
    """Lambda entry point for DynamoDB stream batches."""
    configure_logging()
    identity = InvocationIdentity.from_context(context)
    return _invoke(
        "change_stream",
        event,
        identity,
        lambda settings: run_change_stream(event, settings=settings, identity=identity),
    )


def archive_object_handler(event: Any, context: Any) -> int:
    """Lambda entry point for S3 object-created notifications."""
    configure_logging()
    identity = InvocationIdentity.from_context(context)
    return _invoke(
        "archive_object",
        event,
        identity,
        lambda settings: run_archive_object(
            event,
            settings=settings,
            identity=identity,
            s3_client=get_s3_client(),
        ),
    )
