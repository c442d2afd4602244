"""Calendar helpers for monthly reporting periods."""

from datetime import date, datetime, timezone
from typing import Iterable

from goal_rollup.models import PeriodicUpdate

MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def month_index(month: str) -> int:
    """Return the zero-based calendar index of a month token.

    Raises:
        ValueError: If the token is not one of the 12 month tokens
    """
    try:
        return MONTHS.index(month)
    except ValueError:
        raise ValueError(f"Unknown month token: {month!r}") from None


def previous_period(month: str, year: int, offset: int = 1) -> tuple[str, int]:
    """Step back `offset` months from (month, year).

    Calendar arithmetic: ("Jan", 2025, 1) gives ("Dec", 2024) and
    ("Mar", 2025, 14) gives ("Jan", 2024). A negative offset steps forward.
    """
    years, index = divmod(month_index(month) - offset, 12)
    return MONTHS[index], year + years


def current_period(today: date | None = None) -> tuple[str, int]:
    """Return the (month, year) pair for today."""
    today = today or date.today()
    return MONTHS[today.month - 1], today.year


def period_sort_key(month: str, year: int) -> tuple[int, int]:
    """Calendar ordering key; unknown month tokens sort first within the year."""
    return year, MONTHS.index(month) if month in MONTHS else -1


def timestamp(update: PeriodicUpdate) -> datetime:
    """Parse the creation (or last update) time of an update.

    Missing or unparsable values sort before any real timestamp.
    """
    raw = (update.created_at or update.updated_at or "").strip()
    if not raw:
        return _EPOCH
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return _EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def in_period(updates: Iterable[PeriodicUpdate], month: str, year: int) -> list[PeriodicUpdate]:
    """Filter updates to an exact (month, year) pair."""
    return [u for u in updates if u.month == month and u.year == year]


def latest_update(
    updates: Iterable[PeriodicUpdate],
    subject_id: str,
    month: str | None = None,
    year: int | None = None,
) -> PeriodicUpdate | None:
    """Pick the latest update for a subject.

    With a period given, only updates for that exact (month, year) are
    considered and the newest timestamp wins. Without one, the most recent
    period in calendar order wins, timestamps breaking ties. Equal keys keep
    the first update seen.
    """
    candidates = [u for u in updates if u.subject_id == subject_id]
    if month is not None and year is not None:
        candidates = in_period(candidates, month, year)
    if not candidates:
        return None
    return max(candidates, key=lambda u: (period_sort_key(u.month, u.year), timestamp(u)))


def latest_by_subject(updates: Iterable[PeriodicUpdate]) -> dict[str, PeriodicUpdate]:
    """Index the latest update of every subject."""
    latest: dict[str, PeriodicUpdate] = {}
    for update in updates:
        current = latest.get(update.subject_id)
        if current is None or (period_sort_key(update.month, update.year), timestamp(update)) > (
            period_sort_key(current.month, current.year),
            timestamp(current),
        ):
            latest[update.subject_id] = update
    return latest
