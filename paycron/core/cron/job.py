"""Job — one recurring payment and its place in the schedule."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable, Iterable

from loguru import logger

from paycron.core.cron.recurrence import RecurrenceRule
from paycron.core.cron.types import JobDefinition
from paycron.errors import DecodeError
from paycron.lnurl.resolver import resolve

if TYPE_CHECKING:
    from paycron.core.config.schema import ConnectionConfig
    from paycron.lnurl.negotiator import InvoiceNegotiator
    from paycron.nodes.executor import PaymentExecutor

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Job:
    """A JobDefinition plus its recurrence rule, endpoint and run timestamps.

    Only the scheduler calls ``advance()``. Executions run on deep copies,
    so nothing they do reaches ``next_run``/``last_run``.
    """

    def __init__(self, definition: JobDefinition, clock: Clock = utcnow):
        self.definition = definition
        self.clock = clock
        self.rule = RecurrenceRule(definition.cron_expression)

        self.endpoint: str | None = None
        self.resolve_error: DecodeError | None = None
        try:
            self.endpoint = resolve(definition.ln_address_or_lnurl)
        except DecodeError as e:
            # Reported on every firing instead of aborting startup
            self.resolve_error = e
            logger.warning(f"Job {definition.display_name}: {e}")

        self.last_run: datetime | None = None
        self.next_run: datetime | None = self.rule.next_after(clock())

    def __repr__(self) -> str:
        return (
            f"Job(name={self.name!r}, next_run={self.next_run}, last_run={self.last_run})"
        )

    @property
    def name(self) -> str:
        return self.definition.display_name

    @property
    def is_due(self) -> bool:
        """Pending for a schedule slot it has not fired for yet."""
        return self.next_run is not None and self.next_run != self.last_run

    def advance(self) -> None:
        """Mark ``next_run`` as fired and compute the slot after it.

        The new ``next_run`` is re-derived from the current time and is
        always strictly later than the new ``last_run``.
        """
        if self.next_run is None:
            return
        self.last_run = self.next_run
        self.next_run = next(
            (t for t in self.rule.upcoming(self.clock()) if t > self.last_run), None
        )

    async def execute(
        self,
        connection: ConnectionConfig,
        negotiator: InvoiceNegotiator,
        executor: PaymentExecutor,
    ) -> None:
        """Fire once: negotiate an invoice and pay it.

        Failures are logged and swallowed; the schedule is unaffected and
        nothing is retried before the next slot.
        """
        logger.info(f"Running job {self.name} at {self.clock().isoformat()}")
        try:
            if self.resolve_error is not None:
                raise self.resolve_error
            invoice = await negotiator.get_invoice(self.endpoint, self.definition)
            await executor.pay(invoice, self.definition, connection)
        except Exception as e:
            logger.error(f"Job {self.name} failed: {type(e).__name__}: {e}")
            return
        logger.info(f"Finished job {self.name}")


def build_jobs(definitions: Iterable[JobDefinition], clock: Clock = utcnow) -> list[Job]:
    """Build jobs in registration order. Invalid schedules raise ``ConfigurationError``."""
    return [Job(definition, clock=clock) for definition in definitions]
