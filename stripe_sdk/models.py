"""
Resource models for common response shapes.

Only the fields the SDK relies on are declared; everything else the API
returns is kept as extra attributes.
"""

from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from stripe_sdk.pagination import extract_page_token

T = TypeVar("T")


class StripeObject(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    object: str


# v1


class Customer(StripeObject):
    object: Literal["customer"] = "customer"
    email: str | None = None
    name: str | None = None


class PaymentIntent(StripeObject):
    object: Literal["payment_intent"] = "payment_intent"
    amount: int
    currency: str
    status: str


class ListResponse(BaseModel, Generic[T]):
    """v1 cursor-paginated list."""

    model_config = ConfigDict(extra="allow")

    object: Literal["list"] = "list"
    data: list[T] = Field(default_factory=list)
    has_more: bool = False
    url: str | None = None


# v2


class MeterEvent(StripeObject):
    object: Literal["billing.meter_event"] = "billing.meter_event"
    meter_event_stream: str | None = None
    idempotency_key: str | None = None
    measurement_time: int | None = None
    payload: dict[str, Any] = Field(default_factory=dict)


class MeterEventSession(StripeObject):
    object: Literal["billing.meter_event_session"] = "billing.meter_event_session"
    meter_event_stream: str | None = None
    status: str | None = None


class Event(StripeObject):
    object: Literal["core.event"] = "core.event"
    type: str
    created: int | None = None
    api_version: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)


class EventDestination(StripeObject):
    object: Literal["core.event_destination"] = "core.event_destination"
    endpoint_url: str | None = None
    events_types: list[str] = Field(default_factory=list)
    status: str | None = None
    enabled: bool | None = None
    description: str | None = None


class PaginationResponse(BaseModel, Generic[T]):
    """v2 token-paginated list."""

    model_config = ConfigDict(extra="allow")

    object: Literal["list"] = "list"
    data: list[T] = Field(default_factory=list)
    next_page_url: str | None = None
    previous_page_url: str | None = None

    @property
    def next_page_token(self) -> str | None:
        return extract_page_token(self.next_page_url)

    @property
    def previous_page_token(self) -> str | None:
        return extract_page_token(self.previous_page_url)
