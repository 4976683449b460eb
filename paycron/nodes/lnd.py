"""LND node over its REST gateway (``/v1/getinfo``, ``/v2/router/send``)."""

from __future__ import annotations

import json
import ssl
from pathlib import Path
from typing import Any, AsyncIterator, Callable

import httpx
from loguru import logger

from paycron.core.config.schema import ConnectionConfig
from paycron.errors import ConfigurationError, NodeConnectionError
from paycron.nodes.base import PaymentNode, PaymentRequest, PaymentStatus, PaymentUpdate

CONNECT_TIMEOUT = 30.0
STREAM_READ_TIMEOUT = 90.0

_STATUS_MAP = {
    "SUCCEEDED": PaymentStatus.SUCCEEDED,
    "IN_FLIGHT": PaymentStatus.IN_FLIGHT,
}
_REASON_PREFIX = "FAILURE_REASON_"


class LndNode(PaymentNode):
    """Async client for LND's REST API.

    Parameters
    ----------
    connection : ConnectionConfig
        REST URL (e.g. "https://localhost:8080"), TLS cert and macaroon paths.
    transport : httpx.AsyncBaseTransport, optional
        Custom transport; when given, certificate verification is skipped.
    """

    def __init__(
        self,
        connection: ConnectionConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.connection = connection
        headers = {"Grpc-Metadata-macaroon": _read_macaroon(connection.macaroon_path)}
        verify: ssl.SSLContext | bool = False
        if transport is None:
            verify = _tls_context(connection.cert_path)
        self._client = httpx.AsyncClient(
            base_url=connection.server_url.rstrip("/"),
            headers=headers,
            verify=verify,
            transport=transport,
            timeout=httpx.Timeout(CONNECT_TIMEOUT, read=STREAM_READ_TIMEOUT),
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def get_info(self) -> dict[str, Any]:
        try:
            resp = await self._client.get("/v1/getinfo")
            resp.raise_for_status()
            return resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise NodeConnectionError(
                f"LND at {self.connection.server_url} unreachable: {e}"
            ) from e

    async def send_payment(self, request: PaymentRequest) -> AsyncIterator[PaymentUpdate]:
        body = {
            "payment_request": request.payment_request,
            "timeout_seconds": request.timeout_seconds,
            "fee_limit_sat": str(request.fee_limit_sat),
        }
        try:
            async with self._client.stream("POST", "/v2/router/send", json=body) as resp:
                if resp.is_error:
                    await resp.aread()
                    raise NodeConnectionError(
                        f"LND rejected payment (HTTP {resp.status_code}): {resp.text[:200]}"
                    )
                async for line in resp.aiter_lines():
                    if not line.strip():
                        continue
                    yield parse_update(line)
        except httpx.HTTPError as e:
            raise NodeConnectionError(f"LND payment stream failed: {e}") from e


def parse_update(line: str) -> PaymentUpdate:
    """Parse one newline-delimited JSON entry of the router stream."""
    try:
        data = json.loads(line)
    except ValueError as e:
        raise NodeConnectionError(f"Corrupt payment stream entry: {line[:200]}") from e

    if not isinstance(data, dict):
        raise NodeConnectionError(f"Unexpected payment stream entry: {line[:200]}")
    if "error" in data:
        error = data["error"]
        message = error.get("message", error) if isinstance(error, dict) else error
        raise NodeConnectionError(f"LND stream error: {message}")

    payment = data.get("result", data)
    if not isinstance(payment, dict):
        raise NodeConnectionError(f"Unexpected payment stream entry: {line[:200]}")
    raw_status = str(payment.get("status", "UNKNOWN")).upper()
    return PaymentUpdate(
        status=_STATUS_MAP.get(raw_status, PaymentStatus.FAILED),
        failure_reason=normalize_reason(payment.get("failure_reason")),
        raw_status=raw_status,
    )


def normalize_reason(reason: str | None) -> str | None:
    """``FAILURE_REASON_NO_ROUTE`` → ``no_route``; ``..._NONE`` → None."""
    if not reason:
        return None
    reason = str(reason).upper()
    if reason.startswith(_REASON_PREFIX):
        reason = reason[len(_REASON_PREFIX):]
    return None if reason == "NONE" else reason.lower()


def _read_macaroon(path: str) -> str:
    try:
        return Path(path).read_bytes().hex()
    except OSError as e:
        raise NodeConnectionError(f"Cannot read macaroon {path}: {e}") from e


def _tls_context(cert_path: str) -> ssl.SSLContext:
    try:
        return ssl.create_default_context(cafile=cert_path)
    except (OSError, ssl.SSLError) as e:
        raise NodeConnectionError(f"Cannot load TLS certificate {cert_path}: {e}") from e


async def check_connection(
    connection: ConnectionConfig,
    node_factory: Callable[[ConnectionConfig], PaymentNode] | None = None,
) -> dict[str, Any]:
    """Verify the node answers before scheduling starts.

    Returns the node info; raises ``ConfigurationError`` when unreachable.
    """
    factory = node_factory or LndNode
    try:
        async with factory(connection) as node:
            info = await node.get_info()
    except NodeConnectionError as e:
        raise ConfigurationError(f"Failed to verify connection to node: {e}") from e
    logger.info(f"Connected to node {info.get('alias', '?')} at {connection.server_url}")
    return info
