"""Payment nodes and the payment executor."""

from paycron.nodes.base import PaymentNode, PaymentRequest, PaymentStatus, PaymentUpdate
from paycron.nodes.executor import FALLBACK_FEE_PERCENT, PaymentExecutor, fee_limit
from paycron.nodes.lnd import LndNode, check_connection

__all__ = [
    "FALLBACK_FEE_PERCENT",
    "LndNode",
    "PaymentExecutor",
    "PaymentNode",
    "PaymentRequest",
    "PaymentStatus",
    "PaymentUpdate",
    "check_connection",
    "fee_limit",
]
