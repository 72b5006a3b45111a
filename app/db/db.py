from pathlib import Path

from sqlalchemy.engine import make_url

from .models import Base, Setting, TIMEZONE_SETTING_KEY
from .session import engine, SessionLocal

from app.config.settings import settings
from app.utils.datetime_utils import is_valid_timezone
from app.utils.logging import get_logger

logger = get_logger()


def _ensure_sqlite_directory():
    url = make_url(str(settings.DATABASE_URL))
    if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)


def create_tables():
    _ensure_sqlite_directory()
    Base.metadata.create_all(engine)
    logger.info("Created all tables.")


def drop_tables():
    Base.metadata.drop_all(engine)
    logger.info("Dropped all tables.")


def seed_db():
    """Insert the default timezone setting if it is missing"""
    if not is_valid_timezone(settings.DEFAULT_TIMEZONE):
        logger.warning(
            f"DEFAULT_TIMEZONE {settings.DEFAULT_TIMEZONE!r} is not a known zone, skipping seed"
        )
        return

    with SessionLocal() as db_session:
        existing = db_session.get(Setting, TIMEZONE_SETTING_KEY)
        if existing is None:
            db_session.add(
                Setting(key=TIMEZONE_SETTING_KEY, value=settings.DEFAULT_TIMEZONE)
            )
            db_session.commit()
            logger.info(f"Seeded default timezone {settings.DEFAULT_TIMEZONE}")


def init_db():
    create_tables()
    seed_db()


def reset_db():
    logger.info("Resetting database...")
    drop_tables()
    create_tables()
    seed_db()
    logger.info("Database reset complete.")


if __name__ == "__main__":
    reset_db()
