# gym_scheduler/seed.py
# Admins can only be registered by other admins, so a fresh database gets its first one here:
#   python -m gym_scheduler.seed --email admin@example.com --password secret123 --name Admin
import argparse
import logging

from gym_scheduler import auth, models
from gym_scheduler.database import SessionLocal, init_db
from gym_scheduler.logging_config import setup_logging

logger = logging.getLogger(__name__)


def create_admin(db, email: str, password: str, name: str) -> models.User:
    existing = db.query(models.User).filter(models.User.email == email.lower()).first()
    if existing:
        if existing.role != models.UserRole.ADMIN:
            raise ValueError(f"{email} is already registered as {existing.role.value}")
        logger.info("Admin %s already exists", email)
        return existing

    admin = models.User(
        email=email.lower(),
        name=name,
        password=auth.get_password_hash(password),
        role=models.UserRole.ADMIN,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info("Created admin %s (id %s)", admin.email, admin.id)
    return admin


def main(argv=None):
    parser = argparse.ArgumentParser(description="Create the initial admin account")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--name", default="Admin")
    args = parser.parse_args(argv)

    setup_logging()
    init_db()
    with SessionLocal() as db:
        create_admin(db, args.email, args.password, args.name)


if __name__ == "__main__":
    main()
