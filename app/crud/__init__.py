# app/crud/__init__.py

from .crud_about import about
from .crud_event import event
from .crud_post import post
from .crud_profile import profile
from .crud_registration import registration
