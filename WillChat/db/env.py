from logging.config import fileConfig
import os
import re

from sqlalchemy import create_engine, pool
from alembic import context

from WillChat.config import DATABASE_URL  # also loads .env
from WillChat.database import Base
# Import all models so Alembic autogenerate can see tables in Base.metadata.
import WillChat.models  # noqa: F401  # side-effect import

# Alembic Config object
config = context.config

# Prefer explicit alembic.ini URL, otherwise fall back to the configured DATABASE_URL
def _get_migration_url() -> str:
    url = config.get_main_option("sqlalchemy.url")
    if url:
        url = url.strip()
        # Support placeholder syntax like: sqlalchemy.url = ${DATABASE_URL}
        m = re.fullmatch(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}", url)
        if m:
            env_val = os.getenv(m.group(1)) or ""
            if env_val:
                return env_val
        else:
            return url
    return DATABASE_URL

# Configure logging
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


# Runs migrations in "offline" mode (generates SQL without a live DB connection)
def run_migrations_offline() -> None:
    context.configure(
        url=_get_migration_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        compare_server_default=True,
    )

    with context.begin_transaction():
        context.run_migrations()


# Runs migrations in "online" mode (executes against a live DB connection).
def run_migrations_online() -> None:
    connectable = create_engine(_get_migration_url(), poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            compare_server_default=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
