#!/usr/bin/env python3
"""Container entrypoint: wait for the database, migrate, seed, then serve."""
import os
import sys

from loguru import logger


def migrate(database_url: str) -> None:
    from alembic import command
    from alembic.config import Config

    cfg = Config(os.path.join(os.path.dirname(os.path.abspath(__file__)), "alembic.ini"))
    cfg.set_main_option("sqlalchemy.url", database_url)
    command.upgrade(cfg, "head")


def seed(database_url: str) -> None:
    # Fresh engine: the app engine may have been created before the tables existed
    from sqlalchemy.orm import sessionmaker

    from app.db.session import make_engine
    from app.seed import run

    engine = make_engine(database_url)
    try:
        run(sessionmaker(autoflush=False, bind=engine)())
    finally:
        engine.dispose()


def main() -> None:
    import wait_for_db  # noqa: F401  blocks until Postgres accepts connections

    from app.core.config import settings
    from app.core.logging import configure_logging

    configure_logging()
    logger.info("migrating {}", settings.ENV)
    migrate(settings.DATABASE_URL)
    seed(settings.DATABASE_URL)

    port = os.getenv("PORT", "8000")
    logger.info("starting uvicorn on port {}", port)
    os.execv(sys.executable, [sys.executable, "-m", "uvicorn", "app.main:app", "--host", "0.0.0.0", "--port", port])


if __name__ == "__main__":
    main()
