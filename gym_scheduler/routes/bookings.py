# gym_scheduler/routes/bookings.py
from fastapi import APIRouter, Depends, status

from gym_scheduler import auth, models, schemas
from gym_scheduler.dependencies import BookingServiceDep
from gym_scheduler.responses import api_response, page_params

router = APIRouter(
    prefix="/api/bookings",
    tags=["Bookings"]
)

# Trainee - Book a Class
@router.post("", status_code=status.HTTP_201_CREATED)
def create_booking(
    booking: schemas.BookingCreate,
    service: BookingServiceDep,
    current_user: models.User = Depends(auth.verify_trainee_user)
):
    new_booking = service.evaluate_create(current_user.id, booking.schedule_id)
    return api_response(
        "Class booked successfully",
        schemas.dump(schemas.BookingOut, new_booking),
        status.HTTP_201_CREATED,
    )

# Trainee - Own Bookings
@router.get("/my-bookings")
def list_my_bookings(
    service: BookingServiceDep,
    paging: tuple = Depends(page_params),
    current_user: models.User = Depends(auth.verify_trainee_user)
):
    page, limit = paging
    bookings, total = service.list_for_trainee(current_user.id, page, limit)
    return api_response("Bookings retrieved successfully", {
        "bookings": schemas.dump_many(schemas.BookingOut, bookings),
        "pagination": schemas.Pagination.build(total, page, limit).model_dump(by_alias=True),
    })

# Trainee - Cancel Own Booking
@router.delete("/{booking_id}")
def cancel_booking(
    booking_id: int,
    service: BookingServiceDep,
    current_user: models.User = Depends(auth.verify_trainee_user)
):
    service.evaluate_cancel(current_user.id, booking_id)
    return api_response("Booking cancelled successfully")
