# gym_scheduler/dependencies.py
from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from gym_scheduler.database import get_db
from gym_scheduler.services.bookings import BookingService
from gym_scheduler.services.schedules import ScheduleService


def get_schedule_service(db: Session = Depends(get_db)) -> ScheduleService:
    return ScheduleService(db)


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    return BookingService(db)


ScheduleServiceDep = Annotated[ScheduleService, Depends(get_schedule_service)]
BookingServiceDep = Annotated[BookingService, Depends(get_booking_service)]
