"""Resolve named date ranges into concrete half-open windows.

All arithmetic happens on UTC calendar days: an instant is converted to UTC
and truncated to its date, here and when history is grouped per day. The
current instant is always passed in, so resolution is deterministic.

Calendar tokens (weeks, months, years) align to boundaries; weeks start on
Monday. ``last_30_days`` and ``last_12_months`` are rolling and include today.
"""
import calendar
from datetime import date, datetime, time, timedelta, timezone

from app.schemas.analytics import CustomRange, DateRange, DateWindow

ONE_DAY = timedelta(days=1)
TRAILING_DAYS = 30


class InvalidDateRange(ValueError):
    pass


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_day(value: datetime) -> date:
    """Truncate an instant to its UTC calendar day. Naive values are taken as UTC."""
    return as_utc(value).date()


def shift_months(day: date, months: int) -> date:
    # Clamp to the target month's length (Mar 31 - 1 month -> Feb 28/29).
    index = day.year * 12 + (day.month - 1) + months
    year, month0 = divmod(index, 12)
    month = month0 + 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


def week_start(day: date) -> date:
    return day - timedelta(days=day.weekday())


def _trailing_window(today: date) -> DateWindow:
    return DateWindow(start=today - timedelta(days=TRAILING_DAYS - 1), end=today + ONE_DAY)


def _window_for_day(token: DateRange, today: date) -> DateWindow:
    tomorrow = today + ONE_DAY

    if token == DateRange.today:
        return DateWindow(start=today, end=tomorrow)
    if token == DateRange.yesterday:
        return DateWindow(start=today - ONE_DAY, end=today)
    if token == DateRange.this_week:
        start = week_start(today)
        return DateWindow(start=start, end=start + timedelta(days=7))
    if token == DateRange.last_week:
        end = week_start(today)
        return DateWindow(start=end - timedelta(days=7), end=end)
    if token == DateRange.last_30_days:
        return _trailing_window(today)
    if token == DateRange.this_month:
        start = today.replace(day=1)
        return DateWindow(start=start, end=shift_months(start, 1))
    if token == DateRange.last_month:
        end = today.replace(day=1)
        return DateWindow(start=shift_months(end, -1), end=end)
    if token == DateRange.this_year:
        return DateWindow(start=date(today.year, 1, 1), end=date(today.year + 1, 1, 1))
    if token == DateRange.last_12_months:
        return DateWindow(start=shift_months(today, -12) + ONE_DAY, end=tomorrow)
    if token == DateRange.all_time:
        return DateWindow()
    raise InvalidDateRange(f"Unsupported date range: {token}")


def _custom_window(custom: CustomRange | None, today: date) -> DateWindow:
    if custom is None or custom.start is None or custom.end is None:
        # Incomplete custom range: use the trailing 30 days rather than failing.
        return _trailing_window(today)
    if custom.start > custom.end:
        raise InvalidDateRange("Custom range start must not be after its end")
    return DateWindow(start=custom.start, end=custom.end + ONE_DAY)


def resolve_window(token: DateRange | str, now: datetime, custom: CustomRange | None = None) -> DateWindow:
    """Return the ``[start, end)`` window for ``token`` as of ``now``."""
    try:
        token = DateRange(token)
    except ValueError as exc:
        raise InvalidDateRange(f"Unknown date range: {token}") from exc

    today = utc_day(now)
    if token == DateRange.custom:
        return _custom_window(custom, today)
    return _window_for_day(token, today)


# How far "now" moves back to land in the preceding period of the same token.
_PREVIOUS_SHIFT = {
    DateRange.today: lambda d: d - ONE_DAY,
    DateRange.yesterday: lambda d: d - ONE_DAY,
    DateRange.this_week: lambda d: d - timedelta(days=7),
    DateRange.last_week: lambda d: d - timedelta(days=7),
    DateRange.last_30_days: lambda d: d - timedelta(days=TRAILING_DAYS),
    DateRange.this_month: lambda d: shift_months(d, -1),
    DateRange.last_month: lambda d: shift_months(d, -1),
    DateRange.this_year: lambda d: shift_months(d, -12),
    DateRange.last_12_months: lambda d: shift_months(d, -12),
}


def previous_window(
    token: DateRange | str, now: datetime, custom: CustomRange | None = None
) -> DateWindow | None:
    """Return the window immediately preceding ``resolve_window(token, now, custom)``.

    ``all_time`` has no previous period. A complete custom range yields the
    window of identical length that ends where the supplied range starts.
    """
    current = resolve_window(token, now, custom)
    token = DateRange(token)
    today = utc_day(now)

    if token == DateRange.all_time:
        return None
    if token == DateRange.custom:
        if custom is None or custom.start is None or custom.end is None:
            token = DateRange.last_30_days
        else:
            length = current.end - current.start
            return DateWindow(start=current.start - length, end=current.start)

    return _window_for_day(token, _PREVIOUS_SHIFT[token](today))


def window_bounds(window: DateWindow) -> tuple[datetime | None, datetime | None]:
    """UTC midnight bounds for store filters, as naive datetimes (columns hold naive UTC)."""
    start = datetime.combine(window.start, time.min) if window.start else None
    end = datetime.combine(window.end, time.min) if window.end else None
    return start, end
