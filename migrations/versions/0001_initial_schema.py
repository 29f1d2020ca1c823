"""initial schema: users, class schedules, bookings, schedule days

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00

"""
from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

user_role = sa.Enum("TRAINEE", "TRAINER", "ADMIN", name="userrole")


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("password", sa.String(), nullable=False),
        sa.Column("role", user_role, nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "class_schedules",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("trainer_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("start_time", sa.DateTime(), nullable=False),
        sa.Column("end_time", sa.DateTime(), nullable=False),
        sa.Column("max_trainees", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_class_schedules_id", "class_schedules", ["id"])
    op.create_index("ix_class_schedules_trainer_id", "class_schedules", ["trainer_id"])
    op.create_index("ix_class_schedules_start_time", "class_schedules", ["start_time"])

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("trainee_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "class_schedule_id",
            sa.Integer(),
            sa.ForeignKey("class_schedules.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("trainee_id", "class_schedule_id", name="uq_booking_trainee_schedule"),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_trainee_id", "bookings", ["trainee_id"])
    op.create_index("ix_bookings_class_schedule_id", "bookings", ["class_schedule_id"])

    op.create_table(
        "schedule_days",
        sa.Column("day", sa.Date(), primary_key=True),
    )


def downgrade():
    op.drop_table("schedule_days")
    op.drop_table("bookings")
    op.drop_table("class_schedules")
    op.drop_table("users")
    user_role.drop(op.get_bind(), checkfirst=True)
