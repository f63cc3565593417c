# src/reeltalk/scripts/migrate.py
"""Apply Alembic migrations up to head using the configured database."""
from __future__ import annotations

import os

from alembic import command
from alembic.config import Config

from reeltalk.core.settings import settings


def run_upgrade_head() -> None:
    cfg = Config()
    # Script location relative to the project root
    script_location = os.path.join(os.path.dirname(__file__), "..", "..", "..", "migrations")
    cfg.set_main_option("script_location", os.path.abspath(script_location))
    cfg.set_main_option("sqlalchemy.url", settings.effective_database_url)
    command.upgrade(cfg, "head")


if __name__ == "__main__":
    run_upgrade_head()
