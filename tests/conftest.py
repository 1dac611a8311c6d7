"""
Shared pytest fixtures.

pip install -e ".[dev]"
pytest -q tests
"""

from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest

from hec_forwarder.models import InvocationIdentity
from hec_forwarder.settings import Settings
from tests.helpers import RecordingCollector

HEC_URL = "https://hec.example.com:8088/services/collector"
HEC_TOKEN = "00000000-0000-0000-0000-000000000000"


@pytest.fixture()
def hec_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SPLUNK_HEC_URL", HEC_URL)
    monkeypatch.setenv("SPLUNK_HEC_TOKEN", HEC_TOKEN)
    monkeypatch.setenv("SPLUNK_HEC_RETRY_BASE_DELAY_MS", "1")
    monkeypatch.setenv("SPLUNK_HEC_RETRY_MAX_DELAY_MS", "5")
    for name in ("SPLUNK_HEC_INDEX", "SPLUNK_HEC_MAX_RETRIES", "SPLUNK_HEC_MAX_BATCH_COUNT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def settings(hec_env: None) -> Settings:
    return Settings()


@pytest.fixture()
def identity() -> InvocationIdentity:
    return InvocationIdentity(function_name="splunk-forwarder", aws_request_id="req-123")


@pytest.fixture()
def no_sleep(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    sleep_calls: list[float] = []

    async def fake_sleep(delay: float) -> None:
        sleep_calls.append(delay)

    monkeypatch.setattr("hec_forwarder.relay.asyncio.sleep", fake_sleep)
    return sleep_calls


@pytest.fixture()
def make_http_client() -> Callable[[RecordingCollector], httpx.AsyncClient]:
    def factory(collector: RecordingCollector) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(collector))

    return factory
