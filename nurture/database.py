"""
Database engine + session factory.

SQLite for local dev and tests, Postgres in production. The engine is shared
by the Flask app and the nurture worker pool: every lookup worker opens its own
short-lived session, so the Postgres pool is sized to the worker count.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from nurture.config import DATABASE_URL, DB_STATEMENT_TIMEOUT_MS, NURTURE_MAX_WORKERS


class Base(DeclarativeBase):
    pass


def normalize_url(raw: str) -> str:
    """Hosted Postgres hands out postgres://, SQLAlchemy 2.x only accepts postgresql://."""
    if raw.startswith('postgres://'):
        return 'postgresql://' + raw[len('postgres://'):]
    return raw


def build_engine(database_url: str):
    if database_url.startswith('sqlite'):
        # Worker threads share the file; wait on locks instead of failing fast
        return create_engine(database_url, connect_args={'check_same_thread': False, 'timeout': 30})
    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=NURTURE_MAX_WORKERS,
        max_overflow=NURTURE_MAX_WORKERS,
        connect_args={'options': f'-c statement_timeout={DB_STATEMENT_TIMEOUT_MS}'},
    )


url = normalize_url(DATABASE_URL)
engine = build_engine(url)
SessionLocal = sessionmaker(bind=engine)


def get_session():
    """Return a new DB session. Callers close it."""
    return SessionLocal()
