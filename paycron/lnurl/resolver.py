"""Destination resolver — Lightning Address or bech32 LNURL to an HTTPS endpoint."""

from __future__ import annotations

from bech32 import CHARSET, bech32_hrp_expand, bech32_polymod, convertbits

from paycron.errors import DecodeError

WELL_KNOWN_TEMPLATE = "https://{domain}/.well-known/lnurlp/{localpart}"

_URI_PREFIX = "lightning:"
_CHECKSUM_LEN = 6


def resolve(address: str) -> str:
    """Turn a payment destination into the LNURL-pay endpoint to query.

    ``alice@example.com`` maps onto the well-known path on ``example.com``;
    anything else is decoded as a bech32 LNURL carrying the URL bytes.

    Raises
    ------
    DecodeError
        The address is neither a usable Lightning Address nor valid bech32.
    """
    address = address.strip()
    if address.lower().startswith(_URI_PREFIX):
        address = address[len(_URI_PREFIX):]

    if "@" in address:
        return _resolve_ln_address(address)
    return decode_lnurl(address)


def _resolve_ln_address(address: str) -> str:
    parts = address.split("@")
    if len(parts) != 2 or not all(parts):
        raise DecodeError(f"Invalid Lightning Address: {address!r}")
    localpart, domain = parts
    return WELL_KNOWN_TEMPLATE.format(domain=domain, localpart=localpart)


def decode_lnurl(lnurl: str) -> str:
    """Decode a bech32 LNURL into the URL it encodes.

    Same checks as ``bech32.bech32_decode`` minus its 90-character cap,
    which real LNURLs routinely exceed.
    """
    # bech32 is case-insensitive
    bech = lnurl.lower()
    if not bech or any(ord(c) < 33 or ord(c) > 126 for c in bech):
        raise DecodeError(f"LNURL contains invalid characters: {lnurl!r}")

    sep = bech.rfind("1")
    if sep < 1 or sep + _CHECKSUM_LEN + 1 > len(bech):
        raise DecodeError(f"LNURL is not bech32: {lnurl!r}")

    hrp, payload = bech[:sep], bech[sep + 1:]
    if any(c not in CHARSET for c in payload):
        raise DecodeError(f"LNURL contains non-bech32 characters: {lnurl!r}")

    data = [CHARSET.find(c) for c in payload]
    if bech32_polymod(bech32_hrp_expand(hrp) + data) != 1:
        raise DecodeError(f"LNURL checksum mismatch: {lnurl!r}")

    decoded = convertbits(data[:-_CHECKSUM_LEN], 5, 8, False)
    if decoded is None:
        raise DecodeError(f"LNURL has invalid padding: {lnurl!r}")

    try:
        return bytes(decoded).decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError(f"LNURL payload is not UTF-8: {lnurl!r}") from e
