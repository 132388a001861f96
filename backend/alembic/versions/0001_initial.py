from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255)),
        sa.Column("full_name", sa.String(length=255)),
        sa.Column("auth_provider", sa.String(length=32), nullable=False, server_default="email"),
        sa.Column("subscription_status", sa.String(length=32), nullable=False, server_default="free"),
        sa.Column("subscription_expires_at", sa.DateTime(timezone=True)),
        *_timestamps(),
        sa.CheckConstraint(
            "subscription_status IN ('free', 'pup_monthly', 'pup_annual')",
            name="users_subscription_status_check",
        ),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "dogs",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("owner_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("breed", sa.String(length=128)),
        sa.Column("age_years", sa.Integer()),
        sa.Column("age_months", sa.Integer()),
        sa.Column("weight_lbs", sa.Float()),
        sa.Column("sex", sa.String(length=16), nullable=False, server_default="unknown"),
        sa.Column("is_neutered", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("medical_history", sa.Text()),
        sa.Column("allergies", sa.Text()),
        sa.Column("current_medications", sa.Text()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint("sex IN ('male', 'female', 'unknown')", name="dogs_sex_check"),
        sa.CheckConstraint(
            "age_months IS NULL OR (age_months >= 0 AND age_months <= 11)",
            name="dogs_age_months_check",
        ),
        sa.CheckConstraint("weight_lbs IS NULL OR weight_lbs >= 0", name="dogs_weight_check"),
    )
    op.create_index("ix_dogs_owner_id", "dogs", ["owner_id"])

    op.create_table(
        "health_logs",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("dog_id", sa.Uuid(), sa.ForeignKey("dogs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("log_type", sa.String(length=32), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("notes", sa.Text()),
        sa.Column("meal_type", sa.String(length=64)),
        sa.Column("amount", sa.String(length=64)),
        sa.Column("duration", sa.String(length=32)),
        sa.Column("activity_type", sa.String(length=64)),
        sa.Column("mood_level", sa.Integer()),
        sa.Column("symptom_type", sa.String(length=128)),
        sa.Column("severity_level", sa.Integer()),
        sa.Column("digestion_quality", sa.String(length=64)),
        sa.Column("supplement_name", sa.String(length=128)),
        sa.Column("dosage", sa.String(length=64)),
        sa.Column("appointment_type", sa.String(length=64)),
        sa.Column("location", sa.String(length=255)),
        sa.Column("grooming_type", sa.String(length=64)),
        sa.Column("treat_name", sa.String(length=128)),
        sa.Column("water_amount", sa.String(length=64)),
        sa.Column("photo_url", sa.String(length=512)),
        sa.Column("client_id", sa.String(length=64), unique=True),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index("ix_health_logs_dog_id", "health_logs", ["dog_id"])
    op.create_index("ix_health_logs_timestamp", "health_logs", ["timestamp"])

    op.create_table(
        "daily_check_ins",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("dog_id", sa.Uuid(), sa.ForeignKey("dogs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("check_in_date", sa.Date(), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("has_symptoms", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("symptoms_notes", sa.Text()),
        sa.Column("meals_logged", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("activity_logged", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("water_logged", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("overall_mood", sa.Integer()),
        sa.Column("additional_notes", sa.Text()),
        sa.UniqueConstraint("dog_id", "check_in_date", name="daily_check_ins_dog_date_key"),
        sa.CheckConstraint(
            "overall_mood IS NULL OR (overall_mood >= 1 AND overall_mood <= 5)",
            name="daily_check_ins_mood_check",
        ),
    )
    op.create_index("ix_daily_check_ins_dog_id", "daily_check_ins", ["dog_id"])

    op.create_table(
        "pet_reminders",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("dog_id", sa.Uuid(), sa.ForeignKey("dogs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("reminder_type", sa.String(length=32), nullable=False),
        sa.Column("frequency", sa.String(length=32), nullable=False, server_default="Once"),
        sa.Column("next_due_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_completed_date", sa.DateTime(timezone=True)),
        sa.Column("last_notified_due_date", sa.DateTime(timezone=True)),
        sa.Column("notes", sa.Text()),
        sa.Column("is_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_pet_reminders_dog_id", "pet_reminders", ["dog_id"])
    op.create_index("ix_pet_reminders_next_due_date", "pet_reminders", ["next_due_date"])

    op.create_table(
        "dog_store_entries",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("dog_id", sa.Uuid(), sa.ForeignKey("dogs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("key", sa.String(length=64), nullable=False),
        sa.Column("value", sa.JSON(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("dog_id", "key", name="dog_store_entries_dog_key"),
    )

    op.create_table(
        "notifications",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("message", sa.Text()),
        sa.Column("type", sa.String(length=64)),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("metadata", sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_notifications_user_id", table_name="notifications")
    op.drop_table("notifications")
    op.drop_table("dog_store_entries")
    op.drop_index("ix_pet_reminders_next_due_date", table_name="pet_reminders")
    op.drop_index("ix_pet_reminders_dog_id", table_name="pet_reminders")
    op.drop_table("pet_reminders")
    op.drop_index("ix_daily_check_ins_dog_id", table_name="daily_check_ins")
    op.drop_table("daily_check_ins")
    op.drop_index("ix_health_logs_timestamp", table_name="health_logs")
    op.drop_index("ix_health_logs_dog_id", table_name="health_logs")
    op.drop_table("health_logs")
    op.drop_index("ix_dogs_owner_id", table_name="dogs")
    op.drop_table("dogs")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
