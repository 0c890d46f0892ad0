"""Root conftest for all tests - sys.path setup and shared event factory."""

import sys
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable

import pytest

# Add src/ to sys.path so tests run without an editable install
src_root = Path(__file__).parent.parent / "src"
if str(src_root) not in sys.path:
    sys.path.insert(0, str(src_root))

from folio.events import Event, EventKind  # noqa: E402

EventFactory = Callable[..., Event]


@pytest.fixture
def timestamp() -> datetime:
    """Standard timestamp for tests."""
    return datetime(2024, 1, 15, 10, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_event(timestamp: datetime) -> EventFactory:
    """
    Factory for events with terse arguments.

    Example:
        >>> make_event("buy", 100, "10.00", "2024-03-01")
    """

    def _make(
        kind: str | EventKind,
        quantity: Any,
        unit_price: Any = "0",
        occurred_at: Any = None,
        asset_id: str = "PETR4",
    ) -> Event:
        return Event(
            asset_id=asset_id,
            kind=EventKind(kind),
            quantity=Decimal(str(quantity)),
            unit_price=Decimal(str(unit_price)),
            occurred_at=occurred_at if occurred_at is not None else timestamp,
        )

    return _make
