"""Error hierarchy.

Only ``ConfigurationError`` is fatal to the process. Everything raised while a
single job fires is logged and swallowed by ``Job.execute``.
"""

from __future__ import annotations


class PaycronError(Exception):
    """Base class for all paycron errors."""


class ConfigurationError(PaycronError):
    """Invalid configuration or unreachable node at startup."""


class DecodeError(PaycronError):
    """A Lightning Address or LNURL could not be turned into an endpoint."""


class NegotiationError(PaycronError):
    """Invoice negotiation with the payee failed."""


class NetworkError(NegotiationError):
    """The payee endpoint was unreachable or answered with a non-2xx status."""


class MalformedResponseError(NegotiationError):
    """The payee answered with a body that could not be parsed."""


class InvoiceRejectedError(NegotiationError):
    """The payee (or a validator) refused the payment request."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class NodeConnectionError(PaycronError):
    """The payment node could not be reached or its stream broke mid-way."""
