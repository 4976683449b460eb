"""Base payment node — strategy pattern interface."""

from __future__ import annotations

import abc
from enum import Enum
from typing import Any, AsyncIterator

from pydantic import BaseModel, ConfigDict


class PaymentStatus(str, Enum):
    """Classified status of one streamed payment update."""

    SUCCEEDED = "succeeded"
    IN_FLIGHT = "in_flight"
    FAILED = "failed"


class PaymentRequest(BaseModel):
    """Instruction submitted to the node for one invoice."""

    model_config = ConfigDict(frozen=True)

    payment_request: str
    timeout_seconds: int
    fee_limit_sat: int


class PaymentUpdate(BaseModel):
    """One entry of the node's payment status stream."""

    model_config = ConfigDict(frozen=True)

    status: PaymentStatus
    failure_reason: str | None = None
    raw_status: str | None = None  # node's own status name, for logs


class PaymentNode(abc.ABC):
    """Abstract remote payment capability.

    Used as an async context manager; the connection lives for one
    ``async with`` block.
    """

    async def __aenter__(self) -> PaymentNode:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Release the connection."""

    @abc.abstractmethod
    async def get_info(self) -> dict[str, Any]:
        """Return node identity/status. Raises ``NodeConnectionError`` if unreachable."""
        ...

    @abc.abstractmethod
    def send_payment(self, request: PaymentRequest) -> AsyncIterator[PaymentUpdate]:
        """Submit a payment and stream its status updates until the node closes."""
        ...
