"""Job definition types."""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class JobDefinition(BaseModel):
    """A recurring payment, as written in the ``jobs:`` section of the config."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str | None = None
    cron_expression: str = Field(
        validation_alias=AliasChoices("cron_expression", "schedule")
    )
    amount_sats: int = Field(gt=0)
    ln_address_or_lnurl: str = Field(min_length=1)
    max_fee_sats: int | None = Field(default=None, ge=0)  # None = FALLBACK_FEE_PERCENT
    memo: str | None = None

    @property
    def display_name(self) -> str:
        return self.name or self.ln_address_or_lnurl
