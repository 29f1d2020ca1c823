# gym_scheduler/services/bookings.py
import logging
from typing import List, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from gym_scheduler import scheduling
from gym_scheduler.errors import AppError, CapacityExceededError, ConflictError, InvalidInputError, NotFoundError
from gym_scheduler.models import Booking, ClassSchedule, User, utc_now

logger = logging.getLogger(__name__)


class BookingService:
    """Adds trainees to schedules and removes them again.

    Creation locks the trainee row and then the schedule row, so two
    requests cannot both take the last place in a class or book the same
    trainee into overlapping classes.
    """

    def __init__(self, db: Session):
        self.db = db

    def evaluate_create(self, trainee_id: int, schedule_id: int) -> Booking:
        try:
            schedule = self._admit(trainee_id, schedule_id)
        except AppError:
            # Release the row locks taken for the rejected booking
            self.db.rollback()
            raise

        booking = Booking(trainee_id=trainee_id, class_schedule_id=schedule.id)
        self.db.add(booking)
        self.db.commit()
        self.db.refresh(booking)
        logger.info("Trainee %s booked schedule %s (booking %s)", trainee_id, schedule.id, booking.id)
        return booking

    def _admit(self, trainee_id: int, schedule_id: int) -> ClassSchedule:
        self.db.query(User.id).filter(User.id == trainee_id).with_for_update().first()
        schedule = (
            self.db.query(ClassSchedule)
            .filter(ClassSchedule.id == schedule_id)
            .with_for_update()
            .first()
        )
        if not schedule:
            raise NotFoundError("Schedule not found")
        if schedule.start_time <= utc_now():
            raise InvalidInputError("Cannot book a class that has already started")

        booked = (
            self.db.query(func.count(Booking.id))
            .filter(Booking.class_schedule_id == schedule.id)
            .scalar()
        )
        if booked >= schedule.max_trainees:
            logger.info("Rejected booking of schedule %s by trainee %s: full", schedule.id, trainee_id)
            raise CapacityExceededError(
                f"Class schedule is full. Maximum {schedule.max_trainees} trainees allowed per schedule."
            )

        conflict = (
            self.db.query(Booking)
            .join(Booking.class_schedule)
            .filter(
                Booking.trainee_id == trainee_id,
                scheduling.overlap_clause(
                    ClassSchedule.start_time, ClassSchedule.end_time,
                    schedule.start_time, schedule.end_time,
                ),
            )
            .first()
        )
        if conflict:
            logger.info(
                "Rejected booking of schedule %s by trainee %s: overlaps booking %s",
                schedule.id, trainee_id, conflict.id,
            )
            raise ConflictError(
                "You already have a booking during this time slot",
                data={
                    "conflictingBooking": {
                        "id": conflict.id,
                        "scheduleId": conflict.class_schedule_id,
                        "startTime": scheduling.isoformat_utc(conflict.class_schedule.start_time),
                        "endTime": scheduling.isoformat_utc(conflict.class_schedule.end_time),
                    }
                },
            )

        return schedule

    def evaluate_cancel(self, trainee_id: int, booking_id: int) -> None:
        # Someone else's booking is reported exactly like a missing one.
        booking = (
            self.db.query(Booking)
            .filter(Booking.id == booking_id, Booking.trainee_id == trainee_id)
            .first()
        )
        if not booking:
            raise NotFoundError("Booking not found")

        self.db.delete(booking)
        self.db.commit()
        logger.info("Trainee %s cancelled booking %s", trainee_id, booking_id)

    def list_for_trainee(self, trainee_id: int, page: int = 1, limit: int = 10) -> Tuple[List[Booking], int]:
        total = (
            self.db.query(func.count(Booking.id))
            .filter(Booking.trainee_id == trainee_id)
            .scalar()
        )
        bookings = (
            self.db.query(Booking)
            .join(Booking.class_schedule)
            .options(
                joinedload(Booking.class_schedule).joinedload(ClassSchedule.trainer),
                joinedload(Booking.trainee),
            )
            .filter(Booking.trainee_id == trainee_id)
            .order_by(ClassSchedule.start_time.desc(), Booking.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return bookings, total
