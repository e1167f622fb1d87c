"""Next-post time computation for auto-posting schedules."""
from datetime import date, datetime, timedelta
from typing import Optional

import pytz

from app.models.automation import AutoPostingConfig, parse_hhmm

TEST_INTERVAL = timedelta(seconds=30)


def _at(day: date, hhmm: str, tz) -> datetime:
    hour, minute = parse_hhmm(hhmm)
    return tz.localize(datetime(day.year, day.month, day.day, hour, minute))


def calculate_next_post(
    frequency: str,
    time: str,
    custom_times: Optional[list[str]] = None,
    now: Optional[datetime] = None,
    tz=pytz.utc,
) -> datetime:
    """Compute when the next scheduled post should go out.

    Args:
        frequency: daily | alternative | weekly | custom | test30s
        time: "HH:MM" for daily, alternative and weekly schedules
        custom_times: "HH:MM" list for custom schedules
        now: Timezone-aware current time (defaults to now)
        tz: pytz timezone the HH:MM values are expressed in

    Returns:
        Timezone-aware datetime in UTC
    """
    now = now or datetime.now(pytz.utc)

    if frequency == "test30s":
        return (now + TEST_INTERVAL).astimezone(pytz.utc)

    today = now.astimezone(tz).date()

    if frequency == "custom" and custom_times:
        times_today = sorted(_at(today, t, tz) for t in custom_times)
        upcoming = [t for t in times_today if t > now]
        if upcoming:
            return upcoming[0].astimezone(pytz.utc)
        tomorrow = today + timedelta(days=1)
        return min(_at(tomorrow, t, tz) for t in custom_times).astimezone(pytz.utc)

    candidate = _at(today, time, tz)

    if frequency == "alternative":
        # Every other day, never today
        days = 2 if candidate <= now else 1
        return _at(today + timedelta(days=days), time, tz).astimezone(pytz.utc)

    if frequency == "weekly":
        if candidate <= now:
            return _at(today + timedelta(days=7), time, tz).astimezone(pytz.utc)
        return candidate.astimezone(pytz.utc)

    # daily, and custom with no times configured
    if candidate <= now:
        return _at(today + timedelta(days=1), time, tz).astimezone(pytz.utc)
    return candidate.astimezone(pytz.utc)


def is_post_due(config: AutoPostingConfig, now: datetime) -> bool:
    """Whether an enabled config should post at `now`."""
    if config.schedule.frequency == "test30s":
        return config.last_post is None or config.last_post + TEST_INTERVAL <= now
    return config.next_post is not None and config.next_post <= now
