import logging
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine
from sqlmodel import SQLModel

from slotbook.core.config import settings
from slotbook.models.appointment import AppointmentRow  # noqa: F401 - register table
from slotbook.models.user import UserRow  # noqa: F401

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

logger = logging.getLogger("alembic.env")
target_metadata = SQLModel.metadata


def sync_url(database_url: str) -> str:
    """Migrations run on psycopg2; accept the asyncpg and legacy postgres:// spellings too."""
    for prefix in ("postgresql+asyncpg://", "postgres://"):
        if database_url.startswith(prefix):
            return "postgresql://" + database_url[len(prefix):]
    return database_url


def run_migrations_offline() -> None:
    context.configure(
        url=sync_url(settings.database_url),
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connect_args = {"sslmode": "require"} if settings.database_ssl else {}
    connectable = create_engine(sync_url(settings.database_url), connect_args=connect_args)
    logger.info("Migrating %s", connectable.url.render_as_string(hide_password=True))

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata, compare_type=True)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
