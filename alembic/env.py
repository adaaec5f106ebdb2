"""
Alembic environment for the FlashVote schema.

The URL always comes from Settings.sync_database_url (alembic.ini carries
none), and migration output goes through the application's structlog setup.
"""

from alembic import context
from sqlalchemy import engine_from_config, pool

from flashvote.core.config import get_settings
from flashvote.core.logging import get_logger, setup_logging
from flashvote.db.base import Base
import flashvote.models  # noqa: F401 - registers every table on Base.metadata

setup_logging()
logger = get_logger("alembic.env")

config = context.config
database_url = get_settings().sync_database_url
config.set_main_option("sqlalchemy.url", database_url)

target_metadata = Base.metadata


def _configure_kwargs(url: str) -> dict:
    # SQLite cannot ALTER constraints in place
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        "render_as_batch": url.startswith("sqlite"),
    }


def run_migrations_offline() -> None:
    logger.info("migrations_offline", url=database_url)
    context.configure(
        url=database_url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_kwargs(database_url),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    logger.info("migrations_online", dialect=engine.dialect.name)
    with engine.connect() as connection:
        context.configure(connection=connection, **_configure_kwargs(database_url))
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
