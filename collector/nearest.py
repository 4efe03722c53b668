"""Pick the record of a time series closest to the current instant."""

from datetime import datetime
from typing import Callable, Iterable, Optional, TypeVar

T = TypeVar("T")


def select_nearest(
    items: Iterable[T],
    instant_of: Callable[[T], Optional[datetime]],
    now: datetime,
) -> Optional[T]:
    """
    Return the item whose instant has the smallest absolute distance to `now`.
    Items without a usable instant are skipped; ties keep the first item seen.
    """
    best = None
    best_diff = None
    for item in items:
        instant = instant_of(item)
        if instant is None:
            continue
        diff = abs((now - instant).total_seconds())
        if best_diff is None or diff < best_diff:
            best, best_diff = item, diff
    return best
