"""
Date Range Normalization

Snaps a caller's [start, end] range onto calendar-aligned buckets for the
requested granularity and maps fact dates onto those buckets.

Weeks run Sunday to Saturday. A range start is moved back to the first day of
its period; a range end that is not already a period end is moved back to
the end of the previous period, so only complete periods are reported.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Dict, Iterator, Optional, Tuple

import structlog

from seller_economics.domain.enums import DateGranularity
from seller_economics.domain.errors import InvalidRange
from seller_economics.domain.models import DateBucket

logger = structlog.get_logger(__name__)

SATURDAY = 5


def utc_today() -> date:
    """Boundary decisions use UTC+0"""
    return datetime.now(timezone.utc).date()


def years_before(day: date, years: int) -> date:
    """Same calendar day ``years`` earlier; Feb 29 falls back to Feb 28"""
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        return day.replace(year=day.year - years, day=28)


def _days_since_sunday(day: date) -> int:
    return (day.weekday() + 1) % 7


def _month_end(day: date) -> date:
    next_month = (day.replace(day=28) + timedelta(days=4)).replace(day=1)
    return next_month - timedelta(days=1)


def period_start(day: date, granularity: DateGranularity) -> date:
    """First day of the DAY/WEEK/MONTH period containing ``day``"""
    if granularity is DateGranularity.WEEK:
        return day - timedelta(days=_days_since_sunday(day))
    if granularity is DateGranularity.MONTH:
        return day.replace(day=1)
    return day


def period_end(start: date, granularity: DateGranularity) -> date:
    """Last day of the period beginning at ``start``"""
    if granularity is DateGranularity.WEEK:
        return start + timedelta(days=6)
    if granularity is DateGranularity.MONTH:
        return _month_end(start)
    return start


def snap_range(
    start_date: date,
    end_date: date,
    granularity: DateGranularity,
) -> Tuple[date, date]:
    """
    Align [start_date, end_date] to period boundaries.

    Returns:
        Normalized (start, end); start may exceed end when the range is too
        short to hold a complete period.
    """
    if granularity is DateGranularity.WEEK:
        start = period_start(start_date, granularity)
        end = end_date
        if end.weekday() != SATURDAY:
            end = end - timedelta(days=(end.weekday() - SATURDAY) % 7)
        return start, end

    if granularity is DateGranularity.MONTH:
        start = period_start(start_date, granularity)
        end = end_date
        if end != _month_end(end):
            end = end.replace(day=1) - timedelta(days=1)
        return start, end

    return start_date, end_date


def _iter_buckets(start: date, end: date, granularity: DateGranularity) -> Iterator[DateBucket]:
    if granularity is DateGranularity.RANGE:
        yield DateBucket(start=start, end=end, granularity=granularity)
        return

    current = start
    while current <= end:
        bucket_end = period_end(current, granularity)
        yield DateBucket(start=current, end=bucket_end, granularity=granularity)
        current = bucket_end + timedelta(days=1)


def normalize_date_range(
    start_date: date,
    end_date: date,
    granularity: DateGranularity,
    today: Optional[date] = None,
    max_lookback_years: int = 2,
) -> Tuple[DateBucket, ...]:
    """
    Produce the ordered buckets covering a query's date range.

    Args:
        start_date: Requested first day
        end_date: Requested last day
        granularity: Bucket size
        today: Reference date, defaults to the current UTC date
        max_lookback_years: Oldest accepted start_date, in years before today

    Returns:
        Buckets partitioning the normalized range, oldest first

    Raises:
        InvalidRange: start_date is too old, the range is longer than the
            lookback window, or the normalized range is empty
    """
    today = today or utc_today()
    oldest = years_before(today, max_lookback_years)
    if start_date < oldest:
        raise InvalidRange(
            f"startDate {start_date.isoformat()} is more than {max_lookback_years} years "
            f"before {today.isoformat()}"
        )

    # A range may not span more days than the lookback window
    if (end_date - start_date) > (today - oldest):
        raise InvalidRange(
            f"Range {start_date.isoformat()}..{end_date.isoformat()} is longer than "
            f"{max_lookback_years} years"
        )

    start, end = snap_range(start_date, end_date, granularity)
    if start > end:
        raise InvalidRange(
            f"Range {start_date.isoformat()}..{end_date.isoformat()} holds no complete "
            f"{granularity.value} period"
        )

    buckets = tuple(_iter_buckets(start, end, granularity))
    logger.debug(
        "Date range normalized",
        granularity=granularity.value,
        start=start.isoformat(),
        end=end.isoformat(),
        buckets=len(buckets),
    )
    return buckets


class DateBucketer:
    """Maps fact dates onto a fixed, ordered bucket sequence"""

    def __init__(self, buckets: Tuple[DateBucket, ...]):
        if not buckets:
            raise ValueError("DateBucketer requires at least one bucket")
        self.buckets = buckets
        self.granularity = buckets[0].granularity
        self.start = buckets[0].start
        self.end = buckets[-1].end
        self._by_start: Dict[date, DateBucket] = {b.start: b for b in buckets}

    def bucket_for(self, day: Optional[date]) -> Optional[DateBucket]:
        """Bucket holding ``day``, or None when it falls outside the range"""
        if day is None or day < self.start or day > self.end:
            return None
        if self.granularity is DateGranularity.RANGE:
            return self.buckets[0]
        return self._by_start.get(period_start(day, self.granularity))
