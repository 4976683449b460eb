"""Cron scheduling — recurrence rules, jobs and the scheduler loop."""

from paycron.core.cron.job import Job, build_jobs
from paycron.core.cron.recurrence import RecurrenceRule
from paycron.core.cron.scheduler import PaymentScheduler, SchedulerState
from paycron.core.cron.types import JobDefinition

__all__ = [
    "Job",
    "JobDefinition",
    "PaymentScheduler",
    "RecurrenceRule",
    "SchedulerState",
    "build_jobs",
]
