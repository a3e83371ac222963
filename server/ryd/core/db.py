from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from ryd.core.config import settings


def engine_options(url: str) -> dict:
    """Engine keyword arguments for ``url``; SQLite runs need cross-thread access."""

    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


engine = create_engine(settings.DATABASE_URL, future=True, **engine_options(settings.DATABASE_URL))
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
