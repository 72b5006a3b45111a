from datetime import date, timedelta
from typing import List, Set


def is_reminder_day(days_remaining: int) -> bool:
    """Decide whether a day with ``days_remaining`` left before the target gets a reminder."""
    if days_remaining > 30:
        return days_remaining % 30 == 0
    if days_remaining > 7:
        return days_remaining % 7 == 0
    if days_remaining > 3:
        return days_remaining % 3 == 0
    return True


def generate_notification_dates(target_date: date, today: date) -> List[date]:
    """
    Compute the reminder dates for an event.

    The schedule always contains ``today`` (an immediate confirmation) and the
    target date itself when it is not in the past. In between, reminders thin
    out the further away the target is: every 30 days beyond a month, weekly
    inside a month, every third day inside a week and daily over the last
    three days.

    Args:
        target_date: The event's target date
        today: Current date in the configured timezone

    Returns:
        Sorted list of unique dates, all within ``[today, target_date]``
        (just ``[today]`` when the target is already past)
    """
    dates: Set[date] = {today}

    if target_date >= today:
        dates.add(target_date)

    total_days = (target_date - today).days
    for days_from_now in range(1, total_days):
        days_remaining = total_days - days_from_now
        if is_reminder_day(days_remaining):
            dates.add(today + timedelta(days=days_from_now))

    return sorted(dates)
