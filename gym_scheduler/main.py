# gym_scheduler/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gym_scheduler.config import settings
from gym_scheduler.database import init_db
from gym_scheduler.errors import register_exception_handlers
from gym_scheduler.logging_config import setup_logging
from gym_scheduler.routes import auth, bookings, schedules

setup_logging()

# Create the database tables
init_db()

app = FastAPI(
    title="Gym Class Scheduler",
    description="Class scheduling and booking for trainers, trainees and admins",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Registering Routers
app.include_router(auth.router)
app.include_router(schedules.router)
app.include_router(bookings.router)

@app.get("/", tags=["Root"])
def read_root():
    return {"message": "Welcome to the Gym Class Scheduler"}

@app.get("/api/health", tags=["Root"])
def health():
    return {"status": "ok"}
