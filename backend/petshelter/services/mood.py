"""
Shelter Pets Backend: Mood Derivation
======================================

What:  Maps a pet's time in the shelter and adoption state to a mood label.
How:   Pure function of (created_at, adopted, now). `now` is always passed in
       by the caller so boundary days can be asserted exactly in tests.

Policy:
    adopted                         → happy (pinned at adoption)
    elapsed whole days < 1          → happy
    1 <= elapsed whole days <= 3    → excited
    elapsed whole days > 3          → sad
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

ONE_DAY = timedelta(days=1)


class Mood(str, Enum):
    """Mood labels. Lowercase is the only casing stored or returned."""

    HAPPY = "happy"
    SAD = "sad"
    CALM = "calm"
    PLAYFUL = "playful"
    EXCITED = "excited"


def as_utc(moment: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored as UTC.
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def elapsed_days(created_at: datetime, now: datetime) -> int:
    """Whole days between `created_at` and `now`, rounded down."""
    return (as_utc(now) - as_utc(created_at)) // ONE_DAY


def derive_mood(created_at: datetime, adopted: bool, now: datetime) -> Mood:
    """
    Compute the mood of a pet record.

    Args:
        created_at: When the record was created.
        adopted:    Whether the pet has been adopted.
        now:        The current time (injected, never read from the clock here).

    Returns:
        The derived Mood. A `created_at` in the future counts as zero days.
    """
    if adopted:
        return Mood.HAPPY

    days = elapsed_days(created_at, now)
    if days < 1:
        return Mood.HAPPY
    if days <= 3:
        return Mood.EXCITED
    return Mood.SAD


def normalize_mood(label: str) -> Optional[Mood]:
    """Return the Mood for `label` ignoring case and whitespace, or None if unknown."""
    try:
        return Mood(label.strip().lower())
    except ValueError:
        return None
