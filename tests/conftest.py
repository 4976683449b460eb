"""Shared fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from loguru import logger

from paycron.core.config.schema import ConnectionConfig
from paycron.core.cron.types import JobDefinition


class FakeClock:
    """Settable UTC clock; callable like ``utcnow``."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock(datetime(2030, 1, 1, 0, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def log_messages():
    """Collect loguru messages emitted during the test."""
    messages: list[str] = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def connection(tmp_path):
    macaroon = tmp_path / "admin.macaroon"
    macaroon.write_bytes(b"\x02\x01macaroon")
    return ConnectionConfig(
        server_url="https://node.test:8080",
        cert_path=str(tmp_path / "tls.cert"),
        macaroon_path=str(macaroon),
    )


@pytest.fixture
def make_definition():
    """Factory for JobDefinition with sensible defaults."""

    def _make(**overrides) -> JobDefinition:
        data = {
            "name": "coffee",
            "cron_expression": "0 0 9 * * *",
            "amount_sats": 10_000,
            "ln_address_or_lnurl": "alice@example.com",
            "memo": "hi",
        }
        data.update(overrides)
        return JobDefinition(**data)

    return _make
