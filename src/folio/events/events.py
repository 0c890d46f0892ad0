"""
Ownership events - the input of the position engine.

One Event records one thing that changed what a portfolio owns of an asset:
a trade, a distribution, or a corporate action. Events are immutable Pydantic
models; derived state (positions, returns) is always recomputed from them.

Quantity semantics by kind:
- BUY / STOCK_BONUS: units added
- SELL: units removed (sign ignored, absolute value is used)
- CASH_DIVIDEND / INTEREST_ON_CAPITAL: units that earned the distribution
- SPLIT: multiplication factor (2 for a 2-for-1 split)
- REVERSE_SPLIT: division factor (10 for a 10-to-1 reverse split)

unit_price is the trade price for BUY/SELL, the per-unit amount for
distributions, and is ignored for corporate actions.
"""

from datetime import date, datetime, time, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator


class EventKind(str, Enum):
    """Kind of ownership event."""

    BUY = "buy"
    SELL = "sell"
    CASH_DIVIDEND = "cash_dividend"
    INTEREST_ON_CAPITAL = "interest_on_capital"
    STOCK_BONUS = "stock_bonus"
    SPLIT = "split"
    REVERSE_SPLIT = "reverse_split"

    @property
    def is_trade(self) -> bool:
        return self in (EventKind.BUY, EventKind.SELL)

    @property
    def is_distribution(self) -> bool:
        return self in (EventKind.CASH_DIVIDEND, EventKind.INTEREST_ON_CAPITAL)

    @property
    def is_corporate_action(self) -> bool:
        return self in (EventKind.STOCK_BONUS, EventKind.SPLIT, EventKind.REVERSE_SPLIT)


def ensure_utc(v: Any) -> datetime:
    """
    Normalize a timestamp to a UTC timezone-aware datetime.

    Accepts datetimes, dates (midnight UTC) and ISO-8601 strings
    (a trailing "Z" is understood). Naive datetimes are taken as UTC.
    """
    if isinstance(v, str):
        dt = datetime.fromisoformat(v.replace("Z", "+00:00"))
    elif isinstance(v, datetime):
        dt = v
    elif isinstance(v, date):
        dt = datetime.combine(v, time.min)
    else:
        raise ValueError(f"Cannot parse datetime from {type(v)}: {v}")

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    elif dt.tzinfo != timezone.utc:
        dt = dt.astimezone(timezone.utc)

    return dt


class Event(BaseModel):
    """
    Immutable ownership event for one asset.

    Attributes:
        event_id: Unique identifier
        asset_id: Opaque identifier of the instrument
        kind: Event kind
        quantity: Signed decimal, meaning depends on kind (see module docstring)
        unit_price: Trade price or per-unit distribution amount
        occurred_at: When the event happened (UTC)

    Example:
        >>> event = Event(
        ...     asset_id="PETR4",
        ...     kind=EventKind.BUY,
        ...     quantity=Decimal("100"),
        ...     unit_price=Decimal("30.50"),
        ...     occurred_at=datetime(2024, 1, 15, tzinfo=timezone.utc),
        ... )
    """

    event_id: str = Field(default_factory=lambda: str(uuid4()))
    asset_id: str
    kind: EventKind
    quantity: Decimal
    unit_price: Decimal = Decimal("0")
    occurred_at: datetime

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("occurred_at", mode="before")
    @classmethod
    def _ensure_utc(cls, v: Any) -> datetime:
        return ensure_utc(v)

    @field_validator("quantity", "unit_price")
    @classmethod
    def validate_finite(cls, v: Decimal) -> Decimal:
        """Reject NaN and infinite amounts."""
        if not v.is_finite():
            raise ValueError(f"Amount must be finite, got {v}")
        return v

    @field_validator("unit_price")
    @classmethod
    def validate_unit_price(cls, v: Decimal) -> Decimal:
        """Prices and per-unit payouts cannot be negative."""
        if v < 0:
            raise ValueError(f"unit_price cannot be negative, got {v}")
        return v

    @model_validator(mode="after")
    def _validate_factor(self) -> "Event":
        """Split factors must be positive; a zero factor would divide by zero."""
        if self.kind in (EventKind.SPLIT, EventKind.REVERSE_SPLIT) and self.quantity <= 0:
            raise ValueError(f"{self.kind.value} factor must be positive, got {self.quantity}")
        return self

    @property
    def amount(self) -> Decimal:
        """Cash notional of the event (|quantity| * unit_price); zero for corporate actions."""
        if self.kind.is_corporate_action:
            return Decimal("0")
        return abs(self.quantity) * self.unit_price

    @field_serializer("quantity", "unit_price")
    def _serialize_decimal(self, v: Decimal) -> str:
        """Serialize Decimal to string to keep precision."""
        return format(v, "f")

    @field_serializer("occurred_at")
    def _serialize_occurred_at(self, v: datetime) -> str:
        """Serialize datetime to RFC3339 with Z suffix."""
        return v.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def sort_events(events: Iterable[Event]) -> list[Event]:
    """
    Order events ascending by occurred_at.

    The sort is stable: events sharing a timestamp keep their input order.
    """
    return sorted(events, key=lambda e: e.occurred_at)


def group_by_asset(events: Iterable[Event]) -> dict[str, list[Event]]:
    """Group events by asset_id, preserving first-seen asset order and input order within each group."""
    groups: dict[str, list[Event]] = {}
    for event in events:
        groups.setdefault(event.asset_id, []).append(event)
    return groups
