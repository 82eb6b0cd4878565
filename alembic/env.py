"""Alembic environment for the helpdesk backend.

Run `alembic revision --autogenerate -m "descr"` to create migrations
and `alembic upgrade head` to apply. The database URL comes from
app.core.config (DATABASE_URL), not from alembic.ini.
"""
from logging.config import fileConfig

from alembic import context
from sqlalchemy.engine import Connection

from app.core.database import Base, engine
# import models to register metadata
from app.models import sequence, ticket, update, user  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    context.configure(
        url=str(engine.url),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    with engine.connect() as connection:
        do_run_migrations(connection)


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
