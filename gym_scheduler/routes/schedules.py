# gym_scheduler/routes/schedules.py
from fastapi import APIRouter, Depends, status

from gym_scheduler import auth, models, schemas
from gym_scheduler.dependencies import ScheduleServiceDep
from gym_scheduler.responses import api_response, page_params

router = APIRouter(
    prefix="/api/schedules",
    tags=["Schedules"]
)

# Admin Only - Create a Schedule
@router.post("", status_code=status.HTTP_201_CREATED, dependencies=[Depends(auth.verify_admin_user)])
def create_schedule(schedule: schemas.ScheduleCreate, service: ScheduleServiceDep):
    new_schedule = service.evaluate_create(
        trainer_id=schedule.trainer_id,
        start_time=schedule.start_time,
        max_trainees=schedule.max_trainees,
    )
    return api_response(
        "Class schedule created successfully",
        schemas.dump(schemas.ScheduleOut, new_schedule),
        status.HTTP_201_CREATED,
    )

# Any authenticated user - List Schedules
@router.get("", dependencies=[Depends(auth.get_current_user)])
def list_schedules(service: ScheduleServiceDep, paging: tuple = Depends(page_params)):
    page, limit = paging
    schedules, total = service.list_schedules(page, limit)
    return api_response("Schedules retrieved successfully", {
        "schedules": schemas.dump_many(schemas.ScheduleDetailOut, schedules),
        "pagination": schemas.Pagination.build(total, page, limit).model_dump(by_alias=True),
    })

# Trainer Only - Own Schedules
@router.get("/trainer")
def list_trainer_schedules(
    service: ScheduleServiceDep,
    current_user: models.User = Depends(auth.verify_trainer_user)
):
    schedules = service.list_for_trainer(current_user.id)
    return api_response(
        "Trainer schedules retrieved successfully",
        schemas.dump_many(schemas.ScheduleDetailOut, schedules),
    )

# Admin Only - Update a Schedule
@router.put("/{schedule_id}", dependencies=[Depends(auth.verify_admin_user)])
def update_schedule(schedule_id: int, update: schemas.ScheduleUpdate, service: ScheduleServiceDep):
    schedule = service.evaluate_update(
        schedule_id,
        start_time=update.start_time,
        max_trainees=update.max_trainees,
        trainer_id=update.trainer_id,
    )
    return api_response("Class schedule updated successfully", schemas.dump(schemas.ScheduleOut, schedule))

# Admin Only - Delete a Schedule (its bookings go with it)
@router.delete("/{schedule_id}", dependencies=[Depends(auth.verify_admin_user)])
def delete_schedule(schedule_id: int, service: ScheduleServiceDep):
    dropped = service.evaluate_delete(schedule_id)
    return api_response("Class schedule deleted successfully", {"cancelledBookings": dropped})
