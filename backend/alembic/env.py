import asyncio
from logging.config import fileConfig
from sqlalchemy.ext.asyncio import create_async_engine
from alembic import context
from simulai.core.config import settings
from simulai.db.database import Base
from simulai.db import models  # noqa: F401  MJ: registers every table on Base.metadata
from dotenv import load_dotenv

# MJ: Load environment variables from .env file
load_dotenv()

config = context.config

# MJ: Interpret the config file for logging
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# MJ: Set up target metadata for Alembic
target_metadata = Base.metadata

# MJ: Same database URL as the application
DB_URL = settings.DATABASE_URL


def run_migrations_offline():
    """Run migrations in 'offline' mode."""
    context.configure(
        url=DB_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=DB_URL.startswith("sqlite"),
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection):
    """Run migrations."""
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        render_as_batch=DB_URL.startswith("sqlite"),
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online():
    """Run migrations in 'online' mode."""
    connectable = create_async_engine(DB_URL)

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
