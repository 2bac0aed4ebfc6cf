import uuid
from sqlalchemy import (
    Column,
    String,
    DateTime,
    Text,
    ForeignKey,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship
from app.db.base_class import Base


class AboutSettings(Base):
    """Singleton row holding the language-agnostic parts of the about page."""
    __tablename__ = "about_settings"

    id = Column(
        String, primary_key=True, default=lambda: f"abt_{uuid.uuid4().hex[:12]}"
    )
    admin_name = Column(String, nullable=True)
    vision_image_url = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    translations = relationship(
        "AboutContent",
        back_populates="about",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class AboutContent(Base):
    __tablename__ = "about_content"
    __table_args__ = (
        UniqueConstraint("about_id", "lang", name="about_content_about_lang_unique"),
    )

    id = Column(
        String, primary_key=True, default=lambda: f"ac_{uuid.uuid4().hex[:12]}"
    )
    about_id = Column(
        String,
        ForeignKey("about_settings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    lang = Column(String(5), nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    hero_title = Column(String, nullable=True)
    hero_subtitle = Column(String, nullable=True)
    vision_title = Column(String, nullable=True)
    # JSON-encoded list of paragraphs
    vision_paragraphs = Column(Text, nullable=True)
    values_v0_title = Column(String, nullable=True)
    values_v0_message = Column(Text, nullable=True)
    values_v1_title = Column(String, nullable=True)
    values_v1_message = Column(Text, nullable=True)
    values_v2_title = Column(String, nullable=True)
    values_v2_message = Column(Text, nullable=True)
    quote_text = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    about = relationship("AboutSettings", back_populates="translations")
