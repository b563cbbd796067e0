"""Date utility functions for longshot."""

from datetime import date


def get_current_season(today: date | None = None) -> int:
    """
    Get the current NFL season year.

    Args:
        today: Reference date. Defaults to `date.today()`.

    Returns:
        The current year on or after the Thursday following Labor Day,
        otherwise the previous year.
    """
    if today is None:
        today = date.today()
    current_year = today.year

    # Labor Day is the first Monday in September
    for day in range(1, 8):
        if date(current_year, 9, day).weekday() == 0:  # Monday
            labor_day = date(current_year, 9, day)
            break

    # Thursday following Labor Day
    season_start = date(labor_day.year, labor_day.month, labor_day.day + 3)
    return current_year if today >= season_start else current_year - 1


def resolve_as_of(value: date | str | None = None) -> date:
    """
    Resolve an as-of date for an estimate.

    Args:
        value: A `date`, an ISO `YYYY-MM-DD` string (longer timestamps are
            truncated to the date part), or None for today.

    Returns:
        The resolved date. Unparseable strings fall back to today.
    """
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            pass
    return date.today()


def as_of_year(value: date | str | None = None) -> int:
    """Calendar year of the resolved as-of date."""
    return resolve_as_of(value).year
