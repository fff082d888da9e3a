"""
Alembic environment — binds migrations to nurture.database.

The URL comes from DATABASE_URL (via nurture.config), never from alembic.ini.
"""
from logging.config import fileConfig

from alembic import context

from nurture.database import Base, engine, url
import nurture.models.lead  # noqa: F401
import nurture.models.conversation  # noqa: F401
import nurture.models.message  # noqa: F401
import nurture.models.nurture_run  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of running against a live database."""
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={'paramstyle': 'named'},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    with engine.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
