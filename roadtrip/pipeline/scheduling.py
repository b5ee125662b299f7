"""Calendar scheduling for itinerary days."""

from datetime import date, timedelta

from roadtrip.models import DailyPlanEntry


def assign_dates(day_count: int, start_date: date) -> list[date]:
    """One date per day index, consecutive days starting at ``start_date``."""
    return [start_date + timedelta(days=offset) for offset in range(day_count)]


def compute_stay_days(arrival_date: date, return_date: date) -> int:
    """
    Number of non-driving days between arrival and the requested return.

    Counts the days from the day after arrival up to and including the
    return date. A return on or before the arrival day yields zero.
    """
    return max(0, (return_date - arrival_date).days)


def stay_entries(
    destination: str,
    first_day: int,
    first_date: date,
    count: int,
) -> list[DailyPlanEntry]:
    """Build ``count`` stay days at the destination, continuing the day sequence."""
    return [
        DailyPlanEntry(
            day=first_day + offset,
            date=first_date + timedelta(days=offset),
            from_label=destination,
            to_label=destination,
            distance_km=0.0,
            is_driving=False,
        )
        for offset in range(count)
    ]
