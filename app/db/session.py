from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from app.core.config import settings

# The engine owns the connection pool. pool_pre_ping drops connections the
# database closed while they sat idle.
engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)

# One Session per request, handed out by get_db().
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        # Always closed, even if the endpoint raised.
        db.close()
