"""Run Alembic migrations against the configured authorization database."""
from __future__ import annotations

from pathlib import Path

from alembic import command
from alembic.config import Config

from orion_mint.core.settings import settings

MIGRATIONS_DIR = Path(__file__).resolve().parents[3] / "migrations"


def alembic_config(url: str | None = None) -> Config:
    """Return an Alembic config bound to ``url`` (defaults to settings)."""
    cfg = Config(str(MIGRATIONS_DIR / "alembic.ini"))
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    cfg.set_main_option("sqlalchemy.url", url or settings.database_url_sync)
    return cfg


def run_upgrade_head(url: str | None = None) -> None:
    command.upgrade(alembic_config(url), "head")


if __name__ == "__main__":
    run_upgrade_head()
