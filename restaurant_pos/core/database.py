from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from restaurant_pos.core.config import settings
from restaurant_pos.models.base import Base


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        # FastAPI ejecuta endpoints sync en un threadpool
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


engine = create_engine(settings.database_url, **_engine_kwargs(settings.database_url))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    # Create tables in dev/test without running Alembic
    if settings.env in {"dev", "test"}:
        Base.metadata.create_all(bind=engine)
