from datetime import datetime, timezone

from sqlalchemy.orm import declarative_base


Base = declarative_base()


def utcnow() -> datetime:
    # Fechas guardadas como UTC sin tzinfo
    return datetime.now(timezone.utc).replace(tzinfo=None)
