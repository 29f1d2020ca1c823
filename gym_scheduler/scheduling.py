# gym_scheduler/scheduling.py
# Ranges are half-open [start, end): a class ending at 11:00 does not overlap
# one starting at 11:00. The database holds naive UTC.
from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple

import pytz
from sqlalchemy import and_

from gym_scheduler.config import settings
from gym_scheduler.errors import InvalidInputError


def schedule_timezone(tz_name: Optional[str] = None):
    return pytz.timezone(tz_name or settings.SCHEDULE_TIMEZONE)


def to_utc(moment: datetime, tz_name: Optional[str] = None) -> datetime:
    """Convert to naive UTC. Naive input is wall-clock time in the schedule time zone."""
    if moment.tzinfo is None:
        tz = schedule_timezone(tz_name)
        try:
            moment = tz.localize(moment, is_dst=None)
        except pytz.exceptions.NonExistentTimeError:
            raise InvalidInputError(f"{moment.isoformat()} does not exist in {tz.zone} (clock change)")
        except pytz.exceptions.AmbiguousTimeError:
            raise InvalidInputError(
                f"{moment.isoformat()} is ambiguous in {tz.zone}; send the time with a UTC offset"
            )
    return moment.astimezone(pytz.utc).replace(tzinfo=None)


def isoformat_utc(moment: datetime) -> str:
    """ISO 8601 with a ``Z`` suffix; naive values are taken as UTC."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(pytz.utc).replace(tzinfo=None)
    return moment.isoformat() + "Z"


def schedule_end(start: datetime, hours: Optional[int] = None) -> datetime:
    duration = settings.SCHEDULE_DURATION_HOURS if hours is None else hours
    return start + timedelta(hours=duration)


def intervals_overlap(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    return start_a < end_b and start_b < end_a


def overlap_clause(start_column, end_column, start: datetime, end: datetime):
    """SQL predicate matching rows whose [start_column, end_column) overlaps [start, end)."""
    return and_(start_column < end, end_column > start)


def local_day(moment: datetime, tz_name: Optional[str] = None) -> date:
    """Calendar date of a naive UTC moment, as seen in the schedule time zone."""
    return pytz.utc.localize(moment).astimezone(schedule_timezone(tz_name)).date()


def day_bounds(moment: datetime, tz_name: Optional[str] = None) -> Tuple[datetime, datetime]:
    """Naive UTC [midnight, next midnight) of the local day containing ``moment``."""
    tz = schedule_timezone(tz_name)
    day = local_day(moment, tz_name)
    start = tz.localize(datetime.combine(day, time.min))
    end = tz.localize(datetime.combine(day + timedelta(days=1), time.min))
    return (
        start.astimezone(pytz.utc).replace(tzinfo=None),
        end.astimezone(pytz.utc).replace(tzinfo=None),
    )
