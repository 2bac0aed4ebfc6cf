from sqlalchemy import Column, String, Boolean, DateTime, Text, func, false
from app.db.base_class import Base


class Profile(Base):
    """
    Canonical identity record. The primary key is the identity provider's
    subject id; rows are created on the first authenticated request.
    """
    __tablename__ = "profiles"

    id = Column(String, primary_key=True)
    display_name = Column(String, nullable=True)
    email = Column(String, nullable=False, index=True)
    phone = Column(String, nullable=True)
    bio = Column(Text, nullable=True)
    avatar_url = Column(String, nullable=True)
    newsletter_subscribed = Column(Boolean, nullable=False, server_default=false())

    # Capability flag resolved once per request by the admin dependency
    is_admin = Column(Boolean, nullable=False, server_default=false())

    # Soft delete: set after the identity provider has banned the account
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
