"""Tests for paycron.lnurl.negotiator (HTTP mocked with httpx.MockTransport)."""

from __future__ import annotations

import httpx
import pytest

from paycron.errors import (
    InvoiceRejectedError,
    MalformedResponseError,
    NetworkError,
)
from paycron.lnurl.negotiator import InvoiceNegotiator, check_sendable_bounds

ENDPOINT = "https://example.com/.well-known/lnurlp/alice"


def _transport(info: dict | None = None, pay: dict | None = None, seen: list | None = None):
    info = info if info is not None else {"callback": "https://pay.example/cb", "tag": "payRequest"}
    pay = pay if pay is not None else {"pr": "lnbc100u1pexample"}

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        if request.url.host == "example.com":
            return httpx.Response(200, json=info)
        if request.url.host == "pay.example":
            return httpx.Response(200, json=pay)
        return httpx.Response(404)

    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_payment_request_url(make_definition):
    seen: list[httpx.Request] = []
    negotiator = InvoiceNegotiator(transport=_transport(seen=seen))

    invoice = await negotiator.get_invoice(
        ENDPOINT, make_definition(amount_sats=10_000, memo="hi")
    )

    assert invoice.pr == "lnbc100u1pexample"
    assert invoice.success_message is None
    assert [r.method for r in seen] == ["GET", "GET"]
    assert str(seen[0].url) == ENDPOINT
    assert str(seen[1].url) == "https://pay.example/cb?amount=10000000&comment=hi"


@pytest.mark.asyncio
async def test_empty_memo_sends_empty_comment(make_definition):
    seen: list[httpx.Request] = []
    negotiator = InvoiceNegotiator(transport=_transport(seen=seen))

    await negotiator.get_invoice(ENDPOINT, make_definition(amount_sats=5, memo=None))

    assert seen[1].url.params["amount"] == "5000"
    assert seen[1].url.params["comment"] == ""


@pytest.mark.asyncio
async def test_callback_query_is_preserved(make_definition):
    seen: list[httpx.Request] = []
    transport = _transport(info={"callback": "https://pay.example/cb?id=7"}, seen=seen)

    await InvoiceNegotiator(transport=transport).get_invoice(ENDPOINT, make_definition())

    params = seen[1].url.params
    assert params["id"] == "7"
    assert params["amount"] == "10000000"


@pytest.mark.asyncio
async def test_success_message(make_definition):
    transport = _transport(
        pay={"pr": "lnbc1", "successAction": {"tag": "message", "message": "Thanks!"}}
    )
    invoice = await InvoiceNegotiator(transport=transport).get_invoice(ENDPOINT, make_definition())
    assert invoice.success_message == "Thanks!"


@pytest.mark.asyncio
async def test_extra_fields_ignored(make_definition):
    info = {
        "callback": "https://pay.example/cb",
        "minSendable": 1000,
        "maxSendable": 10**11,
        "metadata": '[["text/plain","alice"]]',
        "commentAllowed": 140,
        "allowsNostr": True,
    }
    invoice = await InvoiceNegotiator(transport=_transport(info=info)).get_invoice(
        ENDPOINT, make_definition()
    )
    assert invoice.pr


# ── Validation hook ───────────────────────────────────────


@pytest.mark.asyncio
async def test_validator_receives_info(make_definition):
    calls = []
    negotiator = InvoiceNegotiator(
        validator=lambda info, definition: calls.append((info.callback, definition.amount_sats)),
        transport=_transport(),
    )
    await negotiator.get_invoice(ENDPOINT, make_definition(amount_sats=42))
    assert calls == [("https://pay.example/cb", 42)]


@pytest.mark.asyncio
async def test_validator_rejection_skips_payment_request(make_definition):
    seen: list[httpx.Request] = []
    info = {"callback": "https://pay.example/cb", "minSendable": 1000, "maxSendable": 2000}
    negotiator = InvoiceNegotiator(
        validator=check_sendable_bounds, transport=_transport(info=info, seen=seen)
    )
    with pytest.raises(InvoiceRejectedError, match="maxSendable"):
        await negotiator.get_invoice(ENDPOINT, make_definition(amount_sats=10))
    assert len(seen) == 1


def test_check_sendable_bounds(make_definition):
    from paycron.lnurl.types import PayInfo

    info = PayInfo(callback="https://x/cb", minSendable=10_000, maxSendable=20_000)
    check_sendable_bounds(info, make_definition(amount_sats=15))
    with pytest.raises(InvoiceRejectedError, match="minSendable"):
        check_sendable_bounds(info, make_definition(amount_sats=5))


# ── Failures ──────────────────────────────────────────────


@pytest.mark.asyncio
async def test_unreachable_endpoint(make_definition):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    negotiator = InvoiceNegotiator(transport=httpx.MockTransport(handler))
    with pytest.raises(NetworkError):
        await negotiator.get_invoice(ENDPOINT, make_definition())


@pytest.mark.asyncio
async def test_http_error_status(make_definition):
    transport = httpx.MockTransport(lambda request: httpx.Response(502, text="bad gateway"))
    with pytest.raises(NetworkError, match="502"):
        await InvoiceNegotiator(transport=transport).get_invoice(ENDPOINT, make_definition())


@pytest.mark.asyncio
async def test_non_json_body(make_definition):
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>"))
    with pytest.raises(MalformedResponseError):
        await InvoiceNegotiator(transport=transport).get_invoice(ENDPOINT, make_definition())


@pytest.mark.asyncio
async def test_missing_callback(make_definition):
    transport = _transport(info={"tag": "payRequest"})
    with pytest.raises(MalformedResponseError):
        await InvoiceNegotiator(transport=transport).get_invoice(ENDPOINT, make_definition())


@pytest.mark.asyncio
async def test_missing_pr(make_definition):
    transport = _transport(pay={"routes": []})
    with pytest.raises(MalformedResponseError):
        await InvoiceNegotiator(transport=transport).get_invoice(ENDPOINT, make_definition())


@pytest.mark.asyncio
async def test_lnurl_error_status(make_definition):
    transport = _transport(pay={"status": "ERROR", "reason": "Amount too small"})
    with pytest.raises(InvoiceRejectedError) as exc:
        await InvoiceNegotiator(transport=transport).get_invoice(ENDPOINT, make_definition())
    assert exc.value.reason == "Amount too small"
