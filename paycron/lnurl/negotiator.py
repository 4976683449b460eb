"""InvoiceNegotiator — LNURL-pay two-step exchange (info, then payment request)."""

from __future__ import annotations

from typing import Any, Callable

import httpx
from loguru import logger
from pydantic import ValidationError

from paycron.core.cron.types import JobDefinition
from paycron.errors import InvoiceRejectedError, MalformedResponseError, NetworkError
from paycron.lnurl.types import Invoice, PayInfo, PaymentRequestResponse

REQUEST_TIMEOUT = 30.0
MSAT_PER_SAT = 1000

InvoiceValidator = Callable[[PayInfo, JobDefinition], None]


def accept_all(info: PayInfo, definition: JobDefinition) -> None:
    """Default validator: any parsable info response is accepted."""


def check_sendable_bounds(info: PayInfo, definition: JobDefinition) -> None:
    """Reject amounts outside the payee's ``minSendable``/``maxSendable`` range."""
    msat = definition.amount_sats * MSAT_PER_SAT
    if info.min_sendable is not None and msat < info.min_sendable:
        raise InvoiceRejectedError(
            f"{msat} msat is below minSendable {info.min_sendable}"
        )
    if info.max_sendable is not None and msat > info.max_sendable:
        raise InvoiceRejectedError(
            f"{msat} msat is above maxSendable {info.max_sendable}"
        )


class InvoiceNegotiator:
    """Obtain a payable invoice from an LNURL-pay endpoint.

    Stateless between calls: every ``get_invoice`` opens its own HTTP
    client and either returns a complete ``Invoice`` or raises.

    Parameters
    ----------
    validator : callable, optional
        Called with the parsed info response before the payment request
        is fetched. Raise to abort the firing. Defaults to ``accept_all``.
    transport : httpx.AsyncBaseTransport, optional
        Custom transport (tests use ``httpx.MockTransport``).
    timeout : float
        Per-request timeout in seconds.
    """

    def __init__(
        self,
        validator: InvoiceValidator | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        self.validator = validator or accept_all
        self.transport = transport
        self.timeout = timeout

    async def get_invoice(self, endpoint: str, definition: JobDefinition) -> Invoice:
        """Run info fetch, validation and payment-request fetch in order."""
        async with httpx.AsyncClient(
            transport=self.transport,
            timeout=httpx.Timeout(self.timeout),
            follow_redirects=True,
        ) as client:
            info = await self._fetch_info(client, endpoint)
            self.validator(info, definition)
            response = await self._fetch_payment_request(client, info, definition)

        message = None
        if response.success_action:
            message = response.success_action.message or response.success_action.description
        return Invoice(pr=response.pr, success_message=message)

    async def _fetch_info(self, client: httpx.AsyncClient, endpoint: str) -> PayInfo:
        data = await self._get_json(client, endpoint)
        try:
            return PayInfo.model_validate(data)
        except ValidationError as e:
            raise MalformedResponseError(f"Invalid LNURL-pay info from {endpoint}: {e}") from e

    async def _fetch_payment_request(
        self, client: httpx.AsyncClient, info: PayInfo, definition: JobDefinition
    ) -> PaymentRequestResponse:
        params = {
            "amount": definition.amount_sats * MSAT_PER_SAT,
            "comment": definition.memo or "",
        }
        # keep any query the callback already carries
        url = httpx.URL(info.callback).copy_merge_params(params)
        data = await self._get_json(client, url)
        try:
            return PaymentRequestResponse.model_validate(data)
        except ValidationError as e:
            raise MalformedResponseError(
                f"Invalid payment request from {info.callback}: {e}"
            ) from e

    async def _get_json(
        self, client: httpx.AsyncClient, url: str | httpx.URL
    ) -> dict[str, Any]:
        """GET ``url`` and return its JSON object body.

        An LNURL ``{"status": "ERROR"}`` body is raised as a rejection, even
        when it arrives with a non-2xx status.
        """
        try:
            resp = await client.get(url)
        except httpx.HTTPError as e:
            raise NetworkError(f"GET {url} failed: {e}") from e

        logger.debug(f"LNURL GET {resp.request.url} → {resp.status_code}")
        try:
            data = resp.json()
        except ValueError as e:
            if resp.is_error:
                raise NetworkError(f"GET {url} returned HTTP {resp.status_code}") from e
            raise MalformedResponseError(f"Non-JSON response from {url}") from e

        if isinstance(data, dict) and str(data.get("status", "")).upper() == "ERROR":
            raise InvoiceRejectedError(str(data.get("reason") or "unspecified"))
        if resp.is_error:
            raise NetworkError(f"GET {url} returned HTTP {resp.status_code}")
        if not isinstance(data, dict):
            raise MalformedResponseError(f"Expected a JSON object from {url}")
        return data
