"""
tripmate/migrations/env.py — Alembic environment for the TripMate schema.

The target database is DATABASE_URL, or TEST_DATABASE_URL when TEST_RUN is
set. Both are read through tripmate.config, so `.env` files apply here too.
"""

from __future__ import annotations

import os
import sys
from logging.config import fileConfig
from pathlib import Path

from alembic import context
from sqlalchemy import engine_from_config, pool

# alembic may be run from inside tripmate/; make the package importable.
sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from tripmate.config import normalise_database_url  # noqa: E402
from tripmate.app.extensions import db  # noqa: E402
from tripmate.app.models import expense, member, split, trip  # noqa: E402,F401


def _database_url() -> str:
    name = "TEST_DATABASE_URL" if os.getenv("TEST_RUN") else "DATABASE_URL"
    url = os.getenv(name)
    if not url:
        raise RuntimeError(f"{name} must be set to run migrations.")
    return normalise_database_url(url)


config = context.config
config.set_main_option("sqlalchemy.url", _database_url())
if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def _configure(**kwargs) -> None:
    # compare_type so enum/length changes show up in autogenerate
    context.configure(target_metadata=db.metadata, compare_type=True, **kwargs)
    with context.begin_transaction():
        context.run_migrations()


if context.is_offline_mode():
    _configure(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
else:
    engine = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with engine.connect() as connection:
        _configure(connection=connection)
