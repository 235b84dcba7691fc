"""
Schema migrator.

Wraps Alembic so the service can bring its database to the expected schema
before serving traffic. The order migrations run in is MIGRATION_REVISIONS;
the revision chain found in the scripts directory must match it exactly, so
a stray, missing or re-ordered script stops startup instead of being applied.

Applied state lives in Alembic's `alembic_version` table, which makes a
second run a no-op. Every script guards its DDL with existence checks, so a
crash half-way through can be recovered by simply running again.
"""
from __future__ import annotations

from pathlib import Path
from typing import Sequence
import logging

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from alembic.util import CommandError
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from .errors import MigrationError

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parents[1] / "migrations"

# Oldest first. New schema changes are appended here with a new script;
# released entries are never edited or re-ordered.
MIGRATION_REVISIONS: tuple[str, ...] = (
    "0001",  # create things table
    "0002",  # create companies table
)


def build_alembic_config(script_location: Path | str = MIGRATIONS_DIR) -> Config:
    config = Config()
    config.set_main_option("script_location", str(script_location))
    return config


def verify_revision_order(
    config: Config,
    expected: Sequence[str] = MIGRATION_REVISIONS,
) -> None:
    """Raise MigrationError unless the scripts' base-to-head chain equals `expected`."""
    try:
        script = ScriptDirectory.from_config(config)
        chain = [rev.revision for rev in script.walk_revisions()]
    except CommandError as exc:
        raise MigrationError(f"Could not read migration scripts: {exc}") from exc

    chain.reverse()
    if tuple(chain) != tuple(expected):
        raise MigrationError(
            f"Migration scripts {chain} do not match the declared order {list(expected)}"
        )


def current_revision(engine: Engine) -> str | None:
    """Revision recorded in the database, or None if nothing was applied yet."""
    with engine.connect() as connection:
        return MigrationContext.configure(connection).get_current_revision()


def run_migrations(
    engine: Engine,
    target: str | None = None,
    config: Config | None = None,
    revisions: Sequence[str] = MIGRATION_REVISIONS,
) -> str:
    """
    Apply every pending migration up to `target` (default: the last declared
    revision) and return the revision the database is at afterwards.

    Any failure is raised as MigrationError; callers treat it as fatal.
    """
    config = config or build_alembic_config()
    verify_revision_order(config, revisions)
    target = target or revisions[-1]

    try:
        before = current_revision(engine)
    except SQLAlchemyError as exc:
        raise MigrationError(f"Could not read the applied schema revision: {exc}") from exc

    if before == target:
        logger.info(
            "Database schema already up to date",
            extra={"step": "migrate", "revision": before},
        )
        return before

    logger.info(
        "Applying database migrations",
        extra={"step": "migrate", "revision": f"{before or 'base'} -> {target}"},
    )
    try:
        with engine.begin() as connection:
            config.attributes["connection"] = connection
            command.upgrade(config, target)
    except Exception as exc:
        raise MigrationError(f"Failed to migrate database to {target}: {exc}") from exc
    finally:
        config.attributes.pop("connection", None)

    after = current_revision(engine)
    logger.info(
        "Database migrations applied",
        extra={"step": "migrate", "revision": after},
    )
    return after
