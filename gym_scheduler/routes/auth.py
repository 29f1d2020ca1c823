# gym_scheduler/routes/auth.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from gym_scheduler import auth, database, models, schemas
from gym_scheduler.errors import InvalidInputError, NotFoundError, UnauthenticatedError
from gym_scheduler.responses import api_response, page_params

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/auth",
    tags=["Auth"]
)


def _email_taken(db: Session, email: str, exclude_user_id: Optional[int] = None) -> bool:
    query = db.query(models.User).filter(func.lower(models.User.email) == email.lower())
    if exclude_user_id is not None:
        query = query.filter(models.User.id != exclude_user_id)
    return query.first() is not None


def _create_user(db: Session, user: schemas.UserCreate, role: models.UserRole) -> models.User:
    if _email_taken(db, user.email):
        raise InvalidInputError("User already exists with this email")

    new_user = models.User(
        email=user.email.lower(),
        name=user.name.strip(),
        password=auth.get_password_hash(user.password),
        role=role,
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)
    logger.info("Registered %s %s", role.value, new_user.id)
    return new_user


def _apply_user_update(db: Session, user: models.User, update: schemas.UserUpdate) -> models.User:
    if update.name is None and update.email is None:
        raise InvalidInputError("At least one update field (name, email) is required")

    if update.email is not None and update.email.lower() != user.email:
        if _email_taken(db, update.email, exclude_user_id=user.id):
            raise InvalidInputError("Email already in use")
        user.email = update.email.lower()
    if update.name is not None:
        user.name = update.name.strip()

    db.commit()
    db.refresh(user)
    return user


# Trainee self-registration
@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(user: schemas.UserCreate, db: Session = Depends(database.get_db)):
    new_user = _create_user(db, user, models.UserRole.TRAINEE)
    return api_response(
        "User registered successfully",
        {"user": schemas.dump(schemas.UserOut, new_user), "token": auth.create_user_token(new_user)},
        status.HTTP_201_CREATED,
    )

@router.post("/login")
def login(user: schemas.UserLogin, db: Session = Depends(database.get_db)):
    db_user = db.query(models.User).filter(func.lower(models.User.email) == user.email.lower()).first()
    if not db_user or not auth.verify_password(user.password, db_user.password):
        raise UnauthenticatedError("Invalid credentials")

    return api_response(
        "Login successful",
        {"user": schemas.dump(schemas.UserOut, db_user), "token": auth.create_user_token(db_user)},
    )

@router.post("/logout")
def logout(current_user: models.User = Depends(auth.get_current_user)):
    # Tokens are stateless; the client discards its copy.
    return api_response("Logged out successfully")

# Admin Only - Register a Trainer
@router.post("/trainer/register", status_code=status.HTTP_201_CREATED, dependencies=[Depends(auth.verify_admin_user)])
def register_trainer(user: schemas.UserCreate, db: Session = Depends(database.get_db)):
    trainer = _create_user(db, user, models.UserRole.TRAINER)
    return api_response(
        "Trainer registered successfully",
        {"user": schemas.dump(schemas.UserOut, trainer)},
        status.HTTP_201_CREATED,
    )

# Admin Only - Register another Admin
@router.post("/admin/register", status_code=status.HTTP_201_CREATED, dependencies=[Depends(auth.verify_admin_user)])
def register_admin(user: schemas.UserCreate, db: Session = Depends(database.get_db)):
    admin = _create_user(db, user, models.UserRole.ADMIN)
    return api_response(
        "Admin registered successfully",
        {"user": schemas.dump(schemas.UserOut, admin)},
        status.HTTP_201_CREATED,
    )

# Admin Only - Update a Trainer
@router.put("/trainer/{trainer_id}", dependencies=[Depends(auth.verify_admin_user)])
def update_trainer(trainer_id: int, update: schemas.UserUpdate, db: Session = Depends(database.get_db)):
    trainer = db.query(models.User).filter(
        models.User.id == trainer_id,
        models.User.role == models.UserRole.TRAINER
    ).first()
    if not trainer:
        raise NotFoundError("Trainer not found")

    trainer = _apply_user_update(db, trainer, update)
    return api_response("Trainer updated successfully", {"user": schemas.dump(schemas.UserOut, trainer)})

@router.put("/change-password")
def change_password(
    payload: schemas.PasswordChange,
    db: Session = Depends(database.get_db),
    current_user: models.User = Depends(auth.get_current_user)
):
    if not auth.verify_password(payload.current_password, current_user.password):
        raise InvalidInputError("Current password is incorrect")
    if payload.current_password == payload.new_password:
        raise InvalidInputError("New password must be different from the current password")

    current_user.password = auth.get_password_hash(payload.new_password)
    db.commit()
    return api_response("Password updated successfully")

@router.put("/update-profile")
def update_profile(
    update: schemas.UserUpdate,
    db: Session = Depends(database.get_db),
    current_user: models.User = Depends(auth.get_current_user)
):
    user = _apply_user_update(db, current_user, update)
    return api_response("Profile updated successfully", {"user": schemas.dump(schemas.UserOut, user)})

@router.get("/profile")
def get_profile(current_user: models.User = Depends(auth.get_current_user)):
    return api_response("Profile retrieved successfully", {"user": schemas.dump(schemas.UserOut, current_user)})

# Admin Only - List Users
@router.get("/users", dependencies=[Depends(auth.verify_admin_user)])
def list_users(
    role: Optional[models.UserRole] = Query(None),
    paging: tuple = Depends(page_params),
    db: Session = Depends(database.get_db)
):
    page, limit = paging
    query = db.query(models.User)
    if role:
        query = query.filter(models.User.role == role)

    total = query.count()
    users = query.order_by(models.User.id).offset((page - 1) * limit).limit(limit).all()
    return api_response("Users retrieved successfully", {
        "users": schemas.dump_many(schemas.UserOut, users),
        "pagination": schemas.Pagination.build(total, page, limit).model_dump(by_alias=True),
    })

# Admin Only - Get a User
@router.get("/user/{user_id}", dependencies=[Depends(auth.verify_admin_user)])
def get_user(user_id: int, db: Session = Depends(database.get_db)):
    user = db.query(models.User).filter(models.User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return api_response("User retrieved successfully", {"user": schemas.dump(schemas.UserOut, user)})

# Admin Only - Delete a User (hard delete, cascades to schedules and bookings)
@router.delete("/user/{user_id}")
def delete_user(
    user_id: int,
    db: Session = Depends(database.get_db),
    current_user: models.User = Depends(auth.verify_admin_user)
):
    if user_id == current_user.id:
        raise InvalidInputError("You cannot delete your own account")

    user = db.query(models.User).filter(models.User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")

    db.delete(user)
    db.commit()
    logger.info("Admin %s deleted user %s", current_user.id, user_id)
    return api_response("User deleted successfully")
