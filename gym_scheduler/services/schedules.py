# gym_scheduler/services/schedules.py
# Writes lock the calendar day row and then the trainer row before checking,
# so concurrent admins cannot both slip past the daily limit or overlap rule.
import logging
from datetime import date, datetime
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload

from gym_scheduler import scheduling
from gym_scheduler.config import settings
from gym_scheduler.errors import AppError, CapacityExceededError, ConflictError, InvalidInputError, NotFoundError
from gym_scheduler.models import Booking, ClassSchedule, ScheduleDay, User, UserRole, utc_now

logger = logging.getLogger(__name__)


def _interval(schedule: ClassSchedule) -> dict:
    return {
        "id": schedule.id,
        "trainerId": schedule.trainer_id,
        "startTime": scheduling.isoformat_utc(schedule.start_time),
        "endTime": scheduling.isoformat_utc(schedule.end_time),
    }


class ScheduleService:
    """Admission rules for class schedules."""

    def __init__(self, db: Session):
        self.db = db

    # -- lookups and locks ------------------------------------------------

    def _get_trainer(self, trainer_id: int, lock: bool = False) -> User:
        query = self.db.query(User).filter(User.id == trainer_id, User.role == UserRole.TRAINER)
        if lock:
            query = query.with_for_update()
        trainer = query.first()
        if not trainer:
            raise NotFoundError("Trainer not found")
        return trainer

    def _get_schedule(self, schedule_id: int, lock: bool = False) -> ClassSchedule:
        query = self.db.query(ClassSchedule).filter(ClassSchedule.id == schedule_id)
        if lock:
            query = query.with_for_update()
        schedule = query.first()
        if not schedule:
            raise NotFoundError("Schedule not found")
        return schedule

    def _lock_day(self, day: date) -> None:
        row = self.db.query(ScheduleDay).filter(ScheduleDay.day == day).with_for_update().first()
        if row is None:
            self.db.add(ScheduleDay(day=day))
            self.db.flush()

    def _lock_days(self, days: Iterable[date]) -> None:
        """Lock the day rows in a fixed order. A retry rolls back, so re-read anything loaded earlier."""
        ordered = sorted(set(days))
        while True:
            try:
                for day in ordered:
                    self._lock_day(day)
                return
            except IntegrityError:
                # Lost the race to create a day row; the winner has committed it by now.
                self.db.rollback()

    # -- rules ------------------------------------------------------------

    def _check_capacity_value(self, max_trainees: Optional[int]) -> None:
        if max_trainees is not None and max_trainees < 1:
            raise InvalidInputError("Maximum trainees must be at least 1")

    def _check_not_past(self, start: datetime) -> None:
        if start < utc_now():
            raise InvalidInputError("Start time cannot be in the past")

    def _check_daily_limit(self, start: datetime, exclude_id: Optional[int] = None) -> None:
        day_start, day_end = scheduling.day_bounds(start)
        query = self.db.query(ClassSchedule).filter(
            ClassSchedule.start_time >= day_start,
            ClassSchedule.start_time < day_end,
        )
        if exclude_id is not None:
            query = query.filter(ClassSchedule.id != exclude_id)
        same_day = query.order_by(ClassSchedule.start_time).all()

        limit = settings.MAX_SCHEDULES_PER_DAY
        if len(same_day) >= limit:
            day = scheduling.local_day(start)
            logger.info("Rejected schedule at %s: daily limit of %d reached for %s", start, limit, day)
            raise CapacityExceededError(
                f"Maximum daily schedule limit ({limit}) reached",
                data={"date": day.isoformat(), "schedules": [_interval(s) for s in same_day]},
            )

    def _check_trainer_overlap(
        self, trainer_id: int, start: datetime, end: datetime, exclude_id: Optional[int] = None
    ) -> None:
        query = self.db.query(ClassSchedule).filter(
            ClassSchedule.trainer_id == trainer_id,
            scheduling.overlap_clause(ClassSchedule.start_time, ClassSchedule.end_time, start, end),
        )
        if exclude_id is not None:
            query = query.filter(ClassSchedule.id != exclude_id)
        conflict = query.order_by(ClassSchedule.start_time).first()

        if conflict:
            logger.info(
                "Rejected schedule %s-%s for trainer %s: overlaps schedule %s",
                start, end, trainer_id, conflict.id,
            )
            raise ConflictError(
                "Trainer has conflicting schedule",
                data={"conflictingSchedule": _interval(conflict)},
            )

    # -- operations -------------------------------------------------------

    def evaluate_create(
        self, trainer_id: int, start_time: datetime, max_trainees: Optional[int] = None
    ) -> ClassSchedule:
        """Admit and persist a new schedule, or raise the rule it breaks.

        A rejection rolls the session back, releasing the locks and any day
        row created for it.
        """
        try:
            self._check_capacity_value(max_trainees)
            self._get_trainer(trainer_id)
            start = scheduling.to_utc(start_time)
            self._check_not_past(start)
            end = scheduling.schedule_end(start)

            self._lock_days([scheduling.local_day(start)])
            trainer = self._get_trainer(trainer_id, lock=True)
            self._check_daily_limit(start)
            self._check_trainer_overlap(trainer.id, start, end)
        except AppError:
            self.db.rollback()
            raise

        schedule = ClassSchedule(
            trainer_id=trainer.id,
            start_time=start,
            end_time=end,
            max_trainees=settings.DEFAULT_MAX_TRAINEES if max_trainees is None else max_trainees,
        )
        self.db.add(schedule)
        self.db.commit()
        self.db.refresh(schedule)
        logger.info("Created schedule %s for trainer %s at %s", schedule.id, trainer.id, start)
        return schedule

    def evaluate_update(
        self,
        schedule_id: int,
        start_time: Optional[datetime] = None,
        max_trainees: Optional[int] = None,
        trainer_id: Optional[int] = None,
    ) -> ClassSchedule:
        """Apply a partial update, re-running admission for whatever changed.

        Moving a schedule or handing it to another trainer re-checks the
        trainer overlap rule against that trainer's other schedules; moving
        it to another day re-checks the daily limit for the new day.
        """
        if start_time is None and max_trainees is None and trainer_id is None:
            raise InvalidInputError("At least one field to update is required")

        try:
            self._check_capacity_value(max_trainees)
            self._get_schedule(schedule_id)
            new_start = None
            if start_time is not None:
                new_start = scheduling.to_utc(start_time)
                self._check_not_past(new_start)
            if trainer_id is not None:
                self._get_trainer(trainer_id)

            if new_start is not None:
                self._lock_days([scheduling.local_day(new_start)])
            if trainer_id is not None:
                self._get_trainer(trainer_id, lock=True)
            schedule = self._get_schedule(schedule_id, lock=True)

            target_trainer_id = trainer_id if trainer_id is not None else schedule.trainer_id
            start = new_start if new_start is not None else schedule.start_time
            end = scheduling.schedule_end(start)

            if new_start is not None and scheduling.local_day(new_start) != scheduling.local_day(schedule.start_time):
                self._check_daily_limit(new_start, exclude_id=schedule.id)
            if new_start is not None or target_trainer_id != schedule.trainer_id:
                self._check_trainer_overlap(target_trainer_id, start, end, exclude_id=schedule.id)

            if max_trainees is not None:
                booked = (
                    self.db.query(func.count(Booking.id))
                    .filter(Booking.class_schedule_id == schedule.id)
                    .scalar()
                )
                if max_trainees < booked:
                    raise InvalidInputError(
                        f"Cannot reduce capacity below the {booked} existing bookings"
                    )
        except AppError:
            self.db.rollback()
            raise

        if max_trainees is not None:
            schedule.max_trainees = max_trainees

        schedule.trainer_id = target_trainer_id
        schedule.start_time = start
        schedule.end_time = end
        self.db.commit()
        self.db.refresh(schedule)
        logger.info("Updated schedule %s", schedule.id)
        return schedule

    def evaluate_delete(self, schedule_id: int) -> int:
        """Delete a schedule together with its bookings; returns how many bookings went with it."""
        schedule = self._get_schedule(schedule_id, lock=True)
        dropped = len(schedule.bookings)
        self.db.delete(schedule)
        self.db.commit()
        if dropped:
            logger.warning("Deleted schedule %s and cancelled its %d bookings", schedule_id, dropped)
        else:
            logger.info("Deleted schedule %s", schedule_id)
        return dropped

    def list_schedules(self, page: int = 1, limit: int = 10) -> Tuple[List[ClassSchedule], int]:
        total = self.db.query(func.count(ClassSchedule.id)).scalar()
        schedules = (
            self.db.query(ClassSchedule)
            .options(
                joinedload(ClassSchedule.trainer),
                selectinload(ClassSchedule.bookings).joinedload(Booking.trainee),
            )
            .order_by(ClassSchedule.start_time, ClassSchedule.id)
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return schedules, total

    def list_for_trainer(self, trainer_id: int) -> List[ClassSchedule]:
        return (
            self.db.query(ClassSchedule)
            .options(
                joinedload(ClassSchedule.trainer),
                selectinload(ClassSchedule.bookings).joinedload(Booking.trainee),
            )
            .filter(ClassSchedule.trainer_id == trainer_id)
            .order_by(ClassSchedule.start_time)
            .all()
        )
