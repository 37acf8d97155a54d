from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from cueclub.core.config import settings


def _connect_args(url: str) -> dict:
    # SQLite connections are shared between the request threadpool workers
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.SQL_ECHO,
    connect_args=_connect_args(settings.DATABASE_URL),
)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

Base = declarative_base()
