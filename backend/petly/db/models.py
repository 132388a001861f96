import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import relationship

from ..core.timeutils import utcnow
from .base import Base


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "subscription_status IN ('free', 'pup_monthly', 'pup_annual')",
            name="users_subscription_status_check",
        ),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=True)
    full_name = Column(String(255))
    auth_provider = Column(String(32), nullable=False, default="email", server_default="email")
    subscription_status = Column(String(32), nullable=False, default="free", server_default="free")
    subscription_expires_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False)

    dogs = relationship("Dog", back_populates="owner", cascade="all, delete-orphan")
    notifications = relationship("Notification", back_populates="recipient", cascade="all, delete-orphan")
    conversations = relationship("Conversation", back_populates="user", cascade="all, delete-orphan")
    subscriptions = relationship("Subscription", back_populates="user", cascade="all, delete-orphan")

    @property
    def display_name(self) -> str:
        return (self.full_name or self.email or "").strip()

    @property
    def is_guest(self) -> bool:
        return self.auth_provider == "guest"


class Dog(Base):
    __tablename__ = "dogs"
    __table_args__ = (
        CheckConstraint("sex IN ('male', 'female', 'unknown')", name="dogs_sex_check"),
        CheckConstraint("age_months IS NULL OR (age_months >= 0 AND age_months <= 11)", name="dogs_age_months_check"),
        CheckConstraint("weight_lbs IS NULL OR weight_lbs >= 0", name="dogs_weight_check"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(128), nullable=False)
    breed = Column(String(128))
    age_years = Column(Integer)
    age_months = Column(Integer)
    weight_lbs = Column(Float)
    sex = Column(String(16), nullable=False, default="unknown", server_default="unknown")
    is_neutered = Column(Boolean, nullable=False, default=False, server_default="false")
    medical_history = Column(Text)
    allergies = Column(Text)
    current_medications = Column(Text)
    is_active = Column(Boolean, nullable=False, default=True, server_default="true")
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False)

    owner = relationship("User", back_populates="dogs")
    health_logs = relationship("HealthLog", back_populates="dog", cascade="all, delete-orphan")
    check_ins = relationship("DailyCheckIn", back_populates="dog", cascade="all, delete-orphan")
    reminders = relationship("PetReminder", back_populates="dog", cascade="all, delete-orphan")
    store_entries = relationship("DogStoreEntry", back_populates="dog", cascade="all, delete-orphan")

    @property
    def age_display(self) -> str:
        years = self.age_years or 0
        months = self.age_months or 0
        parts = []
        if years:
            parts.append(f"{years} year{'s' if years != 1 else ''}")
        if months:
            parts.append(f"{months} month{'s' if months != 1 else ''}")
        return ", ".join(parts) if parts else "Unknown"


class HealthLog(Base):
    __tablename__ = "health_logs"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    dog_id = Column(Uuid(as_uuid=True), ForeignKey("dogs.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    log_type = Column(String(32), nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)
    notes = Column(Text)
    meal_type = Column(String(64))
    amount = Column(String(64))
    duration = Column(String(32))
    activity_type = Column(String(64))
    mood_level = Column(Integer)
    symptom_type = Column(String(128))
    severity_level = Column(Integer)
    digestion_quality = Column(String(64))
    supplement_name = Column(String(128))
    dosage = Column(String(64))
    appointment_type = Column(String(64))
    location = Column(String(255))
    grooming_type = Column(String(64))
    treat_name = Column(String(128))
    water_amount = Column(String(64))
    photo_url = Column(String(512))
    client_id = Column(String(64), unique=True, nullable=True)
    is_deleted = Column(Boolean, nullable=False, default=False, server_default="false")
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False)

    dog = relationship("Dog", back_populates="health_logs")

    @property
    def display_title(self) -> str:
        if self.log_type == "Meals" and self.meal_type:
            return self.meal_type
        if self.log_type == "Walk" and self.duration:
            return f"Walk - {self.duration} min"
        if self.log_type == "Playtime" and self.duration:
            return f"Playtime - {self.duration} min"
        if self.log_type == "Symptom" and self.symptom_type:
            return self.symptom_type
        if self.log_type == "Mood" and self.mood_level is not None:
            return MOOD_LABELS.get(self.mood_level, "Mood")
        if self.log_type == "Supplements" and self.supplement_name:
            return self.supplement_name
        if self.log_type == "Treat" and self.treat_name:
            return self.treat_name
        if self.log_type == "Grooming" and self.grooming_type:
            return self.grooming_type
        if self.log_type == "Appointments" and self.appointment_type:
            return self.appointment_type
        if self.log_type == "Digestion" and self.digestion_quality:
            return self.digestion_quality
        return self.log_type

    @property
    def display_subtitle(self) -> str | None:
        if self.log_type == "Meals":
            return self.amount
        if self.log_type in ("Walk", "Playtime"):
            return self.activity_type or self.notes
        if self.log_type == "Symptom" and self.severity_level is not None:
            return f"Severity {self.severity_level}/5"
        if self.log_type == "Supplements":
            return self.dosage
        if self.log_type == "Water":
            return self.water_amount
        if self.log_type == "Appointments":
            return self.location
        return self.notes


MOOD_LABELS = {1: "Sad", 2: "Low", 3: "Okay", 4: "Happy", 5: "Great"}


class DailyCheckIn(Base):
    __tablename__ = "daily_check_ins"
    __table_args__ = (
        UniqueConstraint("dog_id", "check_in_date", name="daily_check_ins_dog_date_key"),
        CheckConstraint(
            "overall_mood IS NULL OR (overall_mood >= 1 AND overall_mood <= 5)",
            name="daily_check_ins_mood_check",
        ),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    dog_id = Column(Uuid(as_uuid=True), ForeignKey("dogs.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    check_in_date = Column(Date, nullable=False)
    completed_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    has_symptoms = Column(Boolean, nullable=False, default=False, server_default="false")
    symptoms_notes = Column(Text)
    meals_logged = Column(Boolean, nullable=False, default=False, server_default="false")
    activity_logged = Column(Boolean, nullable=False, default=False, server_default="false")
    water_logged = Column(Boolean, nullable=False, default=False, server_default="false")
    overall_mood = Column(Integer)
    additional_notes = Column(Text)

    dog = relationship("Dog", back_populates="check_ins")

    @property
    def completion_score(self) -> int:
        return sum(
            [
                bool(self.meals_logged),
                bool(self.activity_logged),
                bool(self.water_logged),
                self.overall_mood is not None,
            ]
        )


class PetReminder(Base):
    __tablename__ = "pet_reminders"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    dog_id = Column(Uuid(as_uuid=True), ForeignKey("dogs.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False)
    reminder_type = Column(String(32), nullable=False)
    frequency = Column(String(32), nullable=False, default="Once", server_default="Once")
    next_due_date = Column(DateTime(timezone=True), nullable=False, index=True)
    last_completed_date = Column(DateTime(timezone=True))
    last_notified_due_date = Column(DateTime(timezone=True))
    notes = Column(Text)
    is_enabled = Column(Boolean, nullable=False, default=True, server_default="true")
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False)

    dog = relationship("Dog", back_populates="reminders")


class DogStoreEntry(Base):
    """Per-dog key-value slot holding an encoded list (templates, weight history)."""

    __tablename__ = "dog_store_entries"
    __table_args__ = (UniqueConstraint("dog_id", "key", name="dog_store_entries_dog_key"),)

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    dog_id = Column(Uuid(as_uuid=True), ForeignKey("dogs.id", ondelete="CASCADE"), nullable=False)
    key = Column(String(64), nullable=False)
    value = Column(JSON, nullable=False, default=list)
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False)

    dog = relationship("Dog", back_populates="store_entries")


class Conversation(Base):
    __tablename__ = "conversations"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    dog_id = Column(Uuid(as_uuid=True), ForeignKey("dogs.id", ondelete="SET NULL"), nullable=True)
    title = Column(String(255))
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False)

    user = relationship("User", back_populates="conversations")
    messages = relationship(
        "ChatMessage",
        back_populates="conversation",
        cascade="all, delete-orphan",
        order_by="ChatMessage.created_at",
    )


class ChatMessage(Base):
    __tablename__ = "chat_messages"
    __table_args__ = (
        CheckConstraint("role IN ('user', 'assistant')", name="chat_messages_role_check"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    conversation_id = Column(
        Uuid(as_uuid=True), ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role = Column(String(16), nullable=False)
    content = Column(Text, nullable=False)
    tokens_used = Column(Integer)
    model_used = Column(String(64))
    feedback = Column(String(16))
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    conversation = relationship("Conversation", back_populates="messages")


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(String(128), nullable=False)
    transaction_id = Column(String(128), unique=True, nullable=False)
    original_transaction_id = Column(String(128))
    purchase_date = Column(DateTime(timezone=True))
    expires_date = Column(DateTime(timezone=True))
    status = Column(String(32), nullable=False, default="active", server_default="active")
    environment = Column(String(32))
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False)

    user = relationship("User", back_populates="subscriptions")


class UsageEvent(Base):
    __tablename__ = "usage_events"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    event_type = Column(String(64), nullable=False)
    event_data = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    message = Column(Text)
    type = Column(String(64))
    is_read = Column(Boolean, nullable=False, default=False, server_default="false")
    metadata_payload = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False)

    recipient = relationship("User", back_populates="notifications")
