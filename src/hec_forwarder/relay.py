from __future__ import annotations

import asyncio
import json
import logging
import random

import httpx
from pydantic import ValidationError

from hec_forwarder.errors import TransportError
from hec_forwarder.models import FlushSummary, HecResponse, OutboundMessage
from hec_forwarder.settings import Settings

LOGGER = logging.getLogger(__name__)

_HTTP_TOO_MANY_REQUESTS = 429
_HTTP_SERVER_ERROR = 500
_HTTP_CLIENT_ERROR = 400


class _RetriableFlushError(Exception):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def create_http_client(settings: Settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=settings.hec_timeout_s,
        verify=settings.hec_verify_tls,
    )


class BatchRelay:
    """Buffers outbound messages and sends them to the collector in one request.

    Nothing is sent until ``flush`` is called. A flush posts every buffered
    message in order, retrying transient transport failures, and clears the
    buffer only once the collector has acknowledged the batch.
    """

    def __init__(
        self,
        *,
        client: httpx.AsyncClient,
        url: str,
        token: str,
        max_retries: int,
        retry_base_delay_ms: int,
        retry_max_delay_ms: int,
    ) -> None:
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")

        self._client = client
        self._url = url
        self._headers = {
            "Authorization": f"Splunk {token}",
            "Content-Type": "application/json",
        }
        self._max_attempts = max_retries + 1
        self._retry_base_s = retry_base_delay_ms / 1000.0
        self._retry_max_s = retry_max_delay_ms / 1000.0
        self._buffer: list[OutboundMessage] = []

    @classmethod
    def from_settings(cls, settings: Settings, *, client: httpx.AsyncClient) -> BatchRelay:
        return cls(
            client=client,
            url=settings.hec_url,
            token=settings.hec_token,
            max_retries=settings.hec_max_retries,
            retry_base_delay_ms=settings.hec_retry_base_delay_ms,
            retry_max_delay_ms=settings.hec_retry_max_delay_ms,
        )

    @property
    def pending_count(self) -> int:
        return len(self._buffer)

    def enqueue(self, message: OutboundMessage) -> None:
        self._buffer.append(message)

    async def flush(self) -> FlushSummary:
        if not self._buffer:
            LOGGER.info("hec_flush_skipped_empty")
            return FlushSummary(count=0)

        count = len(self._buffer)
        body = "\n".join(
            json.dumps(message.to_hec_event(), separators=(",", ":"), ensure_ascii=False)
            for message in self._buffer
        )
        attempt = 1

        while True:
            try:
                result = await self._send(body, attempt=attempt)
            except _RetriableFlushError as exc:
                if attempt >= self._max_attempts:
                    LOGGER.error(
                        "hec_flush_retry_exhausted",
                        extra={
                            "pending_count": count,
                            "attempt": attempt,
                            "status_code": exc.status_code,
                        },
                    )
                    raise TransportError(
                        f"Collector flush failed after {attempt} attempt(s): {exc}",
                        attempts=attempt,
                        status_code=exc.status_code,
                    ) from exc

                LOGGER.warning(
                    "hec_flush_retry",
                    extra={
                        "pending_count": count,
                        "attempt": attempt,
                        "status_code": exc.status_code,
                        "error": str(exc),
                    },
                )
                await asyncio.sleep(self._retry_delay(attempt - 1))
                attempt += 1
                continue

            self._buffer.clear()
            LOGGER.info(
                "hec_flush_succeeded",
                extra={"count": count, "attempt": attempt, "hec_text": result.text},
            )
            return FlushSummary(count=count, attempts=attempt, text=result.text, code=result.code)

    async def _send(self, body: str, *, attempt: int) -> HecResponse:
        try:
            response = await self._client.post(
                self._url,
                content=body.encode("utf-8"),
                headers=self._headers,
            )
        except httpx.TransportError as exc:
            raise _RetriableFlushError(f"{type(exc).__name__}: {exc}") from exc
        except httpx.RequestError as exc:
            raise TransportError(
                f"Collector request failed: {exc}",
                attempts=attempt,
            ) from exc

        status = response.status_code
        if status == _HTTP_TOO_MANY_REQUESTS or status >= _HTTP_SERVER_ERROR:
            raise _RetriableFlushError(f"collector returned HTTP {status}", status_code=status)

        try:
            result = HecResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise TransportError(
                f"Collector returned a malformed response (HTTP {status})",
                attempts=attempt,
                status_code=status,
            ) from exc

        # An error status with a well-formed body is still a rejected batch.
        if status >= _HTTP_CLIENT_ERROR or result.code != 0:
            LOGGER.error(
                "hec_flush_rejected",
                extra={"status_code": status, "hec_code": result.code, "hec_text": result.text},
            )
            raise TransportError(
                f"Collector rejected batch: {result.text} (code {result.code}, HTTP {status})",
                attempts=attempt,
                status_code=status,
                hec_code=result.code,
            )

        return result

    def _retry_delay(self, attempt: int) -> float:
        exponential = min(self._retry_max_s, self._retry_base_s * (2**attempt))
        return exponential * random.uniform(0.8, 1.2)
