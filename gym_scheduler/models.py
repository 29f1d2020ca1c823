# gym_scheduler/models.py
import enum
from datetime import datetime, timezone

from sqlalchemy import Column, Date, DateTime, Enum, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from gym_scheduler.config import settings
from gym_scheduler.database import Base


def utc_now() -> datetime:
    """Naive UTC timestamp, the form every datetime column is stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def default_max_trainees() -> int:
    return settings.DEFAULT_MAX_TRAINEES


class UserRole(str, enum.Enum):
    TRAINEE = "TRAINEE"
    TRAINER = "TRAINER"
    ADMIN = "ADMIN"


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    password = Column(String, nullable=False)  # bcrypt hash
    role = Column(Enum(UserRole), nullable=False, default=UserRole.TRAINEE)
    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    schedules = relationship(
        "ClassSchedule",
        back_populates="trainer",
        cascade="all, delete-orphan",
    )
    bookings = relationship(
        "Booking",
        back_populates="trainee",
        cascade="all, delete-orphan",
    )


class ClassSchedule(Base):
    __tablename__ = "class_schedules"
    id = Column(Integer, primary_key=True, index=True)
    trainer_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False)  # always start_time + schedule duration
    max_trainees = Column(Integer, nullable=False, default=default_max_trainees)
    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    trainer = relationship("User", back_populates="schedules")
    bookings = relationship(
        "Booking",
        back_populates="class_schedule",
        cascade="all, delete-orphan",
        order_by="Booking.created_at",
    )

    @property
    def booked_count(self) -> int:
        return len(self.bookings)

    @property
    def available_spots(self) -> int:
        return max(self.max_trainees - self.booked_count, 0)


class Booking(Base):
    __tablename__ = "bookings"
    id = Column(Integer, primary_key=True, index=True)
    trainee_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    class_schedule_id = Column(
        Integer, ForeignKey("class_schedules.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at = Column(DateTime, default=utc_now, nullable=False)

    trainee = relationship("User", back_populates="bookings")
    class_schedule = relationship("ClassSchedule", back_populates="bookings")

    __table_args__ = (
        UniqueConstraint("trainee_id", "class_schedule_id", name="uq_booking_trainee_schedule"),
    )


class ScheduleDay(Base):
    """Lock row per calendar day; schedule admission takes it FOR UPDATE."""

    __tablename__ = "schedule_days"
    day = Column(Date, primary_key=True)
