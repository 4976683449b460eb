"""LNURL-pay response and invoice types."""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class PayInfo(BaseModel):
    """First LNURL-pay response (LUD-06). Unknown fields are ignored."""

    model_config = ConfigDict(extra="ignore")

    callback: str = Field(min_length=1)
    min_sendable: int | None = Field(
        default=None, validation_alias=AliasChoices("minSendable", "min_sendable")
    )
    max_sendable: int | None = Field(
        default=None, validation_alias=AliasChoices("maxSendable", "max_sendable")
    )
    comment_allowed: int | None = Field(
        default=None, validation_alias=AliasChoices("commentAllowed", "comment_allowed")
    )
    metadata: str | None = None
    tag: str | None = None


class SuccessAction(BaseModel):
    """``successAction`` block; only ``message`` is surfaced."""

    model_config = ConfigDict(extra="ignore")

    tag: str | None = None
    message: str | None = None
    description: str | None = None  # url/aes actions


class PaymentRequestResponse(BaseModel):
    """Second LNURL-pay response, from the callback."""

    model_config = ConfigDict(extra="ignore")

    pr: str = Field(min_length=1)
    success_action: SuccessAction | None = Field(
        default=None, validation_alias=AliasChoices("successAction", "success_action")
    )


class Invoice(BaseModel):
    """A payable bolt11 request plus the payee's optional success message.

    Lives for a single job firing.
    """

    model_config = ConfigDict(frozen=True)

    pr: str
    success_message: str | None = None
