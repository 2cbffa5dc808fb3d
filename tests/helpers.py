"""
Shared test helpers: civil-time construction and a controllable clock.
"""
from datetime import datetime, timedelta

import pytz

JAKARTA = pytz.timezone('Asia/Jakarta')


def jakarta(year, month, day, hour=0, minute=0, second=0):
    """An aware UTC datetime for a wall-clock time in Jakarta."""
    local = JAKARTA.localize(datetime(year, month, day, hour, minute, second))
    return local.astimezone(pytz.utc)


class FrozenClock:
    """Stands in for the repository clock; tests move time explicitly."""

    def __init__(self, now):
        self.current = now

    def __call__(self):
        return self.current

    def set(self, now):
        self.current = now

    def advance(self, **kwargs):
        self.current = self.current + timedelta(**kwargs)
