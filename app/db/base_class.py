# app/db/base_class.py

from sqlalchemy.orm import declarative_base

# The single declarative base every model inherits from.
Base = declarative_base()
