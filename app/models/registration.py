import uuid
from sqlalchemy import (
    Column,
    String,
    Integer,
    Numeric,
    DateTime,
    Enum,
    ForeignKey,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import relationship
from app.db.base_class import Base

REGISTRATION_STATUSES = ("pending", "confirmed", "failed", "refunded", "cancelled")


class EventRegistration(Base):
    __tablename__ = "event_registrations"
    # One registration per user per event. Retries reuse the row.
    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="event_registrations_event_user_unique"),
    )

    id = Column(
        String, primary_key=True, default=lambda: f"reg_{uuid.uuid4().hex[:12]}"
    )
    event_id = Column(
        String,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(
        String,
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Payment provider's intent id, attached after the pending row is committed
    payment_reference = Column(String, nullable=True, index=True)
    amount = Column(Numeric(10, 2), nullable=False, server_default=text("0"))
    status = Column(
        Enum(*REGISTRATION_STATUSES, name="registration_status_enum"),
        nullable=False,
        server_default="pending",
    )
    # Bumped on every pending cycle; part of the provider idempotency key
    payment_attempts = Column(Integer, nullable=False, server_default=text("0"))

    # Attendee snapshot taken at registration time
    attendee_name = Column(String, nullable=False)
    attendee_email = Column(String, nullable=False)
    attendee_phone = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
    confirmed_at = Column(DateTime(timezone=True), nullable=True)

    event = relationship("Event", back_populates="registrations")
