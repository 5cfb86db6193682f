"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa


revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "booking_services",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("name_en", sa.Text, nullable=False),
        sa.Column("name_ar", sa.Text),
        sa.Column("is_active", sa.Integer, nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.Text, server_default=sa.text("CURRENT_TIMESTAMP")),
    )

    op.create_table(
        "working_hours_config",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("day_of_week", sa.Integer, nullable=False, unique=True),
        sa.Column("start_time", sa.Text, nullable=False),
        sa.Column("end_time", sa.Text, nullable=False),
        sa.Column("last_appointment_time", sa.Text, nullable=False),
        sa.Column("slot_interval_minutes", sa.Integer, nullable=False, server_default=sa.text("30")),
        sa.Column("is_active", sa.Integer, nullable=False, server_default=sa.text("1")),
        sa.Column("day_name_en", sa.Text),
        sa.Column("day_name_ar", sa.Text),
        sa.Column("updated_at", sa.Text, server_default=sa.text("CURRENT_TIMESTAMP")),
    )

    op.create_table(
        "day_specific_hours",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("date", sa.Text, nullable=False, unique=True),
        sa.Column("is_holiday", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("break_times", sa.Text, nullable=False, server_default=sa.text("'[]'")),
        sa.Column("start_time", sa.Text),
        sa.Column("end_time", sa.Text),
        sa.Column("last_appointment_time", sa.Text),
        sa.Column("slot_interval_minutes", sa.Integer),
        sa.Column("holiday_reason_en", sa.Text),
        sa.Column("holiday_reason_ar", sa.Text),
        sa.Column("updated_at", sa.Text, server_default=sa.text("CURRENT_TIMESTAMP")),
    )

    op.create_table(
        "blocked_dates",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("date", sa.Text, nullable=False, unique=True),
        sa.Column("reason_en", sa.Text, nullable=False),
        sa.Column("reason_ar", sa.Text),
        sa.Column("created_at", sa.Text, server_default=sa.text("CURRENT_TIMESTAMP")),
    )

    op.create_table(
        "availability_slots",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column(
            "service_id", sa.Integer,
            sa.ForeignKey("booking_services.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("date", sa.Text, nullable=False),
        sa.Column("start_time", sa.Text, nullable=False),
        sa.Column("end_time", sa.Text, nullable=False),
        sa.Column("is_available", sa.Integer, nullable=False, server_default=sa.text("1")),
        sa.Column("is_blocked_by_admin", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.Text, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.UniqueConstraint("service_id", "date", "start_time"),
    )
    op.create_index(
        "ix_availability_slots_service_date",
        "availability_slots",
        ["service_id", "date"],
    )

    op.create_table(
        "wakala_applications",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("service_id", sa.Integer, sa.ForeignKey("booking_services.id"), nullable=False),
        sa.Column("full_name", sa.Text, nullable=False),
        sa.Column("booking_date", sa.Text, nullable=False),
        sa.Column("start_time", sa.Text, nullable=False),
        sa.Column("end_time", sa.Text, nullable=False),
        sa.Column("duration_minutes", sa.Integer, nullable=False),
        sa.Column("status", sa.Text, nullable=False, server_default=sa.text("'submitted'")),
        sa.Column("created_at", sa.Text, nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.Text, nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("slot_id", sa.Integer, sa.ForeignKey("availability_slots.id", ondelete="SET NULL")),
        sa.Column("second_slot_id", sa.Integer, sa.ForeignKey("availability_slots.id", ondelete="SET NULL")),
        sa.Column("member_id", sa.Text),
        sa.Column("email", sa.Text),
        sa.Column("phone", sa.Text),
        sa.Column("service_type", sa.Text),
        sa.Column("assigned_admin_id", sa.Text),
        sa.Column("cancelled_at", sa.Text),
        sa.Column("cancelled_by_user", sa.Integer, nullable=False, server_default=sa.text("0")),
    )

    # Weekday defaults: Sunday-Thursday open, Friday/Saturday closed
    days = [
        (1, "Monday", "الاثنين", 1),
        (2, "Tuesday", "الثلاثاء", 1),
        (3, "Wednesday", "الأربعاء", 1),
        (4, "Thursday", "الخميس", 1),
        (5, "Friday", "الجمعة", 0),
        (6, "Saturday", "السبت", 0),
        (7, "Sunday", "الأحد", 1),
    ]
    working_hours = sa.table(
        "working_hours_config",
        sa.column("day_of_week", sa.Integer),
        sa.column("start_time", sa.Text),
        sa.column("end_time", sa.Text),
        sa.column("last_appointment_time", sa.Text),
        sa.column("slot_interval_minutes", sa.Integer),
        sa.column("is_active", sa.Integer),
        sa.column("day_name_en", sa.Text),
        sa.column("day_name_ar", sa.Text),
    )
    op.bulk_insert(
        working_hours,
        [
            {
                "day_of_week": dow,
                "start_time": "09:00",
                "end_time": "14:00",
                "last_appointment_time": "13:30",
                "slot_interval_minutes": 30,
                "is_active": active,
                "day_name_en": name_en,
                "day_name_ar": name_ar,
            }
            for dow, name_en, name_ar, active in days
        ],
    )


def downgrade():
    op.drop_table("wakala_applications")
    op.drop_index("ix_availability_slots_service_date", table_name="availability_slots")
    op.drop_table("availability_slots")
    op.drop_table("blocked_dates")
    op.drop_table("day_specific_hours")
    op.drop_table("working_hours_config")
    op.drop_table("booking_services")
