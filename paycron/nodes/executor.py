"""PaymentExecutor — submit an invoice to the node and follow its status stream."""

from __future__ import annotations

from typing import Callable

from loguru import logger

from paycron.core.config.schema import ConnectionConfig
from paycron.core.cron.types import JobDefinition
from paycron.lnurl.types import Invoice
from paycron.nodes.base import PaymentNode, PaymentRequest, PaymentStatus, PaymentUpdate
from paycron.nodes.lnd import LndNode

PAYMENT_TIMEOUT_SECONDS = 30

# Fee ceiling for jobs without max_fee_sats, in percent of the amount.
FALLBACK_FEE_PERCENT = 1

NodeFactory = Callable[[ConnectionConfig], PaymentNode]


def fee_limit(definition: JobDefinition) -> int:
    """Explicit ``max_fee_sats``, else FALLBACK_FEE_PERCENT of the amount rounded up."""
    if definition.max_fee_sats is not None:
        return definition.max_fee_sats
    return -(-definition.amount_sats * FALLBACK_FEE_PERCENT // 100)


class PaymentExecutor:
    """Pays invoices through a fresh node connection per call.

    A payment the node reports as failed is logged, not raised.
    """

    def __init__(self, node_factory: NodeFactory | None = None):
        self.node_factory = node_factory or LndNode

    async def pay(
        self,
        invoice: Invoice,
        definition: JobDefinition,
        connection: ConnectionConfig,
    ) -> PaymentStatus | None:
        """Submit ``invoice`` and consume the whole status stream.

        Returns the last classified status (None for an empty stream).
        Raises ``NodeConnectionError`` only for connection/transport failures.
        """
        request = PaymentRequest(
            payment_request=invoice.pr,
            timeout_seconds=PAYMENT_TIMEOUT_SECONDS,
            fee_limit_sat=fee_limit(definition),
        )
        name = definition.display_name
        last: PaymentStatus | None = None
        async with self.node_factory(connection) as node:
            async for update in node.send_payment(request):
                last = self._report(name, update, invoice)
        return last

    @staticmethod
    def _report(name: str, update: PaymentUpdate, invoice: Invoice) -> PaymentStatus:
        if update.status is PaymentStatus.SUCCEEDED:
            logger.info(f"Payment succeeded for job {name}")
            if invoice.success_message:
                logger.info(f"Message from receiver: {invoice.success_message}")
        elif update.status is PaymentStatus.IN_FLIGHT:
            logger.info(f"Payment in progress for job {name}")
        else:
            reason = update.failure_reason or "unknown"
            logger.warning(
                f"Payment failed for job {name}: {reason} (status={update.raw_status})"
            )
        return update.status
