"""LNURL-pay: destination resolution and invoice negotiation."""

from paycron.lnurl.negotiator import InvoiceNegotiator, accept_all, check_sendable_bounds
from paycron.lnurl.resolver import decode_lnurl, resolve
from paycron.lnurl.types import Invoice, PayInfo

__all__ = [
    "Invoice",
    "InvoiceNegotiator",
    "PayInfo",
    "accept_all",
    "check_sendable_bounds",
    "decode_lnurl",
    "resolve",
]
