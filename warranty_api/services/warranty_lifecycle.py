"""Warranty status derivation.

A warranty's ``status`` is a pure function of its expiration date and the
time of the write:

- ``expired``  when ``expiration_date < now``
- ``expiring`` when ``now <= expiration_date <= now + 30 days``
- ``active``   otherwise

``apply_lifecycle`` must be the last step before a warranty is committed so
that no caller-supplied status survives a save. Between writes the stored
status may go stale; it is not recomputed on read.
"""

from datetime import datetime, timedelta
from typing import Tuple

from warranty_api.models.warranty import Warranty, WarrantyStatus
from warranty_api.utils.clock import ensure_utc

EXPIRING_WINDOW_DAYS = 30


def expiring_window(now: datetime) -> Tuple[datetime, datetime]:
    """Return the inclusive ``[now, now + 30 days]`` window."""
    now = ensure_utc(now)
    return now, now + timedelta(days=EXPIRING_WINDOW_DAYS)


def derive_status(expiration_date: datetime, now: datetime) -> WarrantyStatus:
    start, end = expiring_window(now)
    expiration_date = ensure_utc(expiration_date)

    # `<` here, so a warranty expiring exactly now is still "expiring"
    if expiration_date < start:
        return WarrantyStatus.EXPIRED
    if expiration_date <= end:
        return WarrantyStatus.EXPIRING
    return WarrantyStatus.ACTIVE


def apply_lifecycle(warranty: Warranty, now: datetime) -> Warranty:
    """Recompute ``status`` and bump ``updated_at``. No other field is touched."""
    warranty.status = derive_status(warranty.expiration_date, now).value
    warranty.updated_at = ensure_utc(now)
    return warranty
