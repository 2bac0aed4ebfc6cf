import uuid
from sqlalchemy import (
    Column,
    String,
    Boolean,
    DateTime,
    Text,
    ForeignKey,
    UniqueConstraint,
    func,
    false,
)
from sqlalchemy.orm import relationship
from app.db.base_class import Base


class Post(Base):
    __tablename__ = "posts"

    id = Column(
        String, primary_key=True, default=lambda: f"post_{uuid.uuid4().hex[:12]}"
    )
    slug = Column(String(200), nullable=False, unique=True, index=True)
    published = Column(Boolean, nullable=False, server_default=false())
    author_id = Column(
        String, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
    )
    banner_url = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    author = relationship("Profile")
    translations = relationship(
        "PostContent",
        back_populates="post",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class PostContent(Base):
    __tablename__ = "post_content"
    __table_args__ = (
        UniqueConstraint("post_id", "lang", name="post_content_post_lang_unique"),
    )

    id = Column(
        String, primary_key=True, default=lambda: f"pc_{uuid.uuid4().hex[:12]}"
    )
    post_id = Column(
        String,
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    lang = Column(String(5), nullable=False)
    title = Column(String, nullable=False)
    excerpt = Column(Text, nullable=True)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    post = relationship("Post", back_populates="translations")
