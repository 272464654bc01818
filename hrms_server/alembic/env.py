# hrms_server/alembic/env.py
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from hrms_server.core.config import settings
from hrms_server.models.model import Base

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Alembic talks to the database through the sync driver (pymysql / sqlite)
DATABASE_URL = config.attributes.get("url") or settings.sync_database_url
IS_SQLITE = DATABASE_URL.startswith("sqlite")


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=Base.metadata,
        compare_type=True,
        compare_server_default=True,
        # sqlite cannot ALTER most columns in place
        render_as_batch=IS_SQLITE,
        **kwargs,
    )


def migrate_offline() -> None:
    """Emit the employees DDL as SQL without connecting."""
    _configure(url=DATABASE_URL, literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def migrate_online() -> None:
    connection = config.attributes.get("connection")
    if connection is not None:
        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()
        return

    engine = create_engine(DATABASE_URL, poolclass=pool.NullPool)
    try:
        with engine.connect() as connection:
            _configure(connection=connection)
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


if context.is_offline_mode():
    migrate_offline()
else:
    migrate_online()
