# authcore/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .core.config import settings


def make_engine(url: str, timeout: int = settings.DATABASE_TIMEOUT_SECONDS, **kwargs):
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": timeout}
    else:
        connect_args = {"connect_timeout": timeout}
        kwargs.setdefault("pool_timeout", timeout)
        kwargs.setdefault("pool_pre_ping", True)
    return create_engine(url, connect_args=connect_args, **kwargs)


engine = make_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
