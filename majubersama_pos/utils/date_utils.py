"""Date manipulation utilities"""

from datetime import date, datetime, time, timedelta
from typing import List, Tuple


def generate_date_range(start: date, end: date) -> List[date]:
    """Generate list of dates from start to end (inclusive)"""
    days = (end - start).days + 1
    return [start + timedelta(days=i) for i in range(days)]


def day_bounds(start: date, end: date | None = None) -> Tuple[datetime, datetime]:
    """Half-open [start 00:00, day after end 00:00) range for timestamp filters"""
    end = end or start
    return datetime.combine(start, time.min), datetime.combine(end + timedelta(days=1), time.min)


def now() -> datetime:
    """Naive shop-local timestamp; sales days are counted in local time"""
    return datetime.now()


def today() -> date:
    return date.today()
