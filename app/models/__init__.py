# app/models/__init__.py
# Import all models so SQLAlchemy can resolve relationships by name

from app.db.base_class import Base
from app.models.profile import Profile
from app.models.post import Post, PostContent
from app.models.event import Event, EventContent
from app.models.about import AboutSettings, AboutContent
from app.models.registration import EventRegistration
