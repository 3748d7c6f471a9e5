# alembic/env.py

import os
import sys
from logging.config import fileConfig

from sqlalchemy import engine_from_config, pool
from alembic import context

# ------------------------------------------------------------------------------
# 0) Load .env so that os.getenv("DATABASE_URL") works
# ------------------------------------------------------------------------------
from dotenv import load_dotenv
load_dotenv()

# ------------------------------------------------------------------------------
# 1) Make sure the project root is on PYTHONPATH so "import cathealth..." works
#    when alembic is run from a source checkout.
# ------------------------------------------------------------------------------
sys.path.insert(0, os.getcwd())

# ------------------------------------------------------------------------------
# 2) Override the URL in alembic.ini with our real environment-variable
# ------------------------------------------------------------------------------
config = context.config
real_url = os.getenv("DATABASE_URL")
if real_url is None:
    raise RuntimeError("DATABASE_URL is not set in your environment.")
if real_url.startswith("postgres://"):
    real_url = real_url.replace("postgres://", "postgresql://", 1)
config.set_main_option("sqlalchemy.url", real_url)

# ------------------------------------------------------------------------------
# 3) Configure Python logging based on alembic.ini
# ------------------------------------------------------------------------------
if config.config_file_name:
    fileConfig(config.config_file_name)

# ------------------------------------------------------------------------------
# 4) Import Base and the model module so that Base.metadata holds wellness_plans
# ------------------------------------------------------------------------------
from cathealth.core.database import Base
import cathealth.db.models  # noqa: F401
target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Emit SQL scripts without a database connection."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Connect to the database and apply migrations directly."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
