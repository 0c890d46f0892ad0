"""
Ownership events consumed by the position engine.

- EventKind: Closed set of event kinds (trades, distributions, corporate actions)
- Event: Immutable event model with UTC-normalized timestamp
- sort_events / group_by_asset: Ordering and grouping helpers used before reduction
"""

from folio.events.events import Event, EventKind, ensure_utc, group_by_asset, sort_events

__all__ = [
    "Event",
    "EventKind",
    "ensure_utc",
    "group_by_asset",
    "sort_events",
]
