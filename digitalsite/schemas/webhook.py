"""Pydantic v2 schemas for MamoPay webhook payloads and responses."""

import uuid
from decimal import Decimal
from typing import Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    NonNegativeInt,
    PositiveInt,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from digitalsite.models.enums import AddOnType, PaymentType, UserPlan

CHARGE_SUCCEEDED = "charge.succeeded"
CAPTURED = "captured"

# --- Inbound event ---


class CustomerDetails(BaseModel):
    """Buyer and purchase details carried in ``custom_data.details``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=255)
    last_name: str = Field(..., min_length=1, max_length=255)
    plan_type: UserPlan
    frequency: Literal["weekly", "monthly", "annually"]
    frequency_interval: PositiveInt = 1
    payment_type: PaymentType = PaymentType.PLAN_PURCHASE
    addon_type: AddOnType | None = None

    # Optional per-purchase limit overrides
    funnels: NonNegativeInt | None = None
    custom_domains: NonNegativeInt | None = None
    subdomains: NonNegativeInt | None = None
    admins: NonNegativeInt | None = None

    @field_validator("plan_type", mode="before")
    @classmethod
    def _normalize_plan_type(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value

    @model_validator(mode="after")
    def _addon_purchase_needs_type(self) -> "CustomerDetails":
        if self.payment_type == PaymentType.ADDON_PURCHASE and self.addon_type is None:
            raise ValueError("addonType is required for ADDON_PURCHASE payments")
        return self


class AffiliateLinkReference(BaseModel):
    """Affiliate link the buyer arrived through."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str | None = None
    token: str = Field(..., min_length=1)
    affiliate_amount: Decimal = Field(default=Decimal("0"), ge=0)


class CustomData(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    details: CustomerDetails
    affiliate_link: AffiliateLinkReference | None = None


class PaymentEvent(BaseModel):
    """A validated ``charge.succeeded`` event."""

    event_type: Literal["charge.succeeded"]
    id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., ge=0)
    amount_currency: str = "USD"
    created_date: str
    status: str = CAPTURED
    subscription_id: str | None = None
    custom_data: CustomData

    @property
    def details(self) -> CustomerDetails:
        return self.custom_data.details

    @property
    def affiliate_link(self) -> AffiliateLinkReference | None:
        return self.custom_data.affiliate_link


# --- Response ---


class WebhookResponse(BaseModel):
    """Acknowledgement returned to the webhook sender (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    received: bool = True
    ignored: bool | None = None
    message: str | None = None
    user_id: uuid.UUID | None = None
    subscription_id: uuid.UUID | None = None
    payment_id: uuid.UUID | None = None
    addon_id: uuid.UUID | None = None
