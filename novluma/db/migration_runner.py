"""
Migration Runner - Applies pending Alembic migrations.

Run before starting the API:

    python -m novluma.db.migration_runner
"""

from pathlib import Path
from typing import Any

from sqlalchemy import Engine, create_engine
from structlog import get_logger

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from novluma.config import settings

logger = get_logger(__name__)

# Path to alembic.ini relative to project root
ALEMBIC_INI_PATH = Path(__file__).parent.parent.parent / "alembic.ini"


def get_sync_database_url(url: str | None = None) -> str:
    """
    Synchronous database URL for migrations.

    Alembic's command API uses synchronous connections, so asyncpg URLs are
    converted to psycopg2 URLs.
    """
    return (url or settings.database_url).replace("+asyncpg", "+psycopg2")


def _alembic_config(sync_url: str) -> Config:
    alembic_cfg = Config(str(ALEMBIC_INI_PATH))
    alembic_cfg.set_main_option("sqlalchemy.url", sync_url.replace("%", "%%"))
    return alembic_cfg


def _get_current_revision(engine: Engine) -> str | None:
    with engine.connect() as conn:
        context = MigrationContext.configure(conn)
        return context.get_current_revision()


def _get_head_revision(alembic_cfg: Config) -> str | None:
    script = ScriptDirectory.from_config(alembic_cfg)
    return script.get_current_head()


def run_migrations() -> None:
    """
    Upgrade the database to the head revision.

    Does nothing when the schema is already current.
    """
    if not ALEMBIC_INI_PATH.exists():
        logger.warning("alembic_config_missing", path=str(ALEMBIC_INI_PATH))
        return

    try:
        sync_url = get_sync_database_url()
        alembic_cfg = _alembic_config(sync_url)
        engine = create_engine(sync_url)

        try:
            current = _get_current_revision(engine)
            head = _get_head_revision(alembic_cfg)

            if current == head:
                logger.info("database_schema_current", revision=current)
                return

            logger.info("database_migration_started", from_revision=current, to_revision=head)
            command.upgrade(alembic_cfg, "head")
            logger.info("database_migration_complete", revision=_get_current_revision(engine))

        finally:
            engine.dispose()

    except Exception as e:
        logger.error("database_migration_failed", error=str(e))
        raise RuntimeError(f"Database migration failed: {e}") from e


def check_migrations_status() -> dict[str, Any]:
    """Current and head revisions without applying anything."""
    if not ALEMBIC_INI_PATH.exists():
        return {"error": "Alembic config not found"}

    try:
        sync_url = get_sync_database_url()
        alembic_cfg = _alembic_config(sync_url)
        engine = create_engine(sync_url)
        try:
            current = _get_current_revision(engine)
            head = _get_head_revision(alembic_cfg)
            return {
                "current_revision": current,
                "head_revision": head,
                "pending": current != head,
            }
        finally:
            engine.dispose()

    except Exception as e:
        return {"error": str(e)}


if __name__ == "__main__":
    from novluma.observability import setup_logging

    setup_logging()
    run_migrations()
