import uuid
from sqlalchemy import (
    Column,
    String,
    Integer,
    Numeric,
    DateTime,
    Text,
    Enum,
    ForeignKey,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import relationship
from app.db.base_class import Base


class Event(Base):
    __tablename__ = "events"

    id = Column(
        String, primary_key=True, default=lambda: f"evt_{uuid.uuid4().hex[:12]}"
    )
    slug = Column(String(200), nullable=False, unique=True, index=True)
    type = Column(
        Enum("online", "in_person", name="event_type_enum"),
        nullable=False,
        server_default="online",
    )
    status = Column(
        Enum("draft", "published", "cancelled", "completed", name="event_status_enum"),
        nullable=False,
        server_default="draft",
    )
    starts_at = Column(DateTime(timezone=True), nullable=False, index=True)
    ends_at = Column(DateTime(timezone=True), nullable=True)
    host = Column(String, nullable=True)
    location = Column(String, nullable=True)
    address = Column(String, nullable=True)
    google_maps_url = Column(String, nullable=True)
    # NULL means unlimited
    capacity = Column(Integer, nullable=True)
    # Authoritative price; 0 means the event is free
    price = Column(Numeric(10, 2), nullable=False, server_default=text("0"))
    banner_url = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    translations = relationship(
        "EventContent",
        back_populates="event",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    registrations = relationship(
        "EventRegistration",
        back_populates="event",
        passive_deletes=True,
    )


class EventContent(Base):
    __tablename__ = "event_content"
    __table_args__ = (
        UniqueConstraint("event_id", "lang", name="event_content_event_lang_unique"),
    )

    id = Column(
        String, primary_key=True, default=lambda: f"ec_{uuid.uuid4().hex[:12]}"
    )
    event_id = Column(
        String,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    lang = Column(String(5), nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    detail = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    event = relationship("Event", back_populates="translations")
