#!/usr/bin/env python3
"""
Create the DraftSwiss tables in the configured database.

For a fresh local database:
    python scripts/init_db.py

Databases that will be migrated later should use Alembic instead:
    alembic upgrade head
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Add src to path so this script can be run directly
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from draftswiss.config import settings
from draftswiss.db.models import Base
from draftswiss.db.session import get_engine

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Create DraftSwiss tables")
    parser.add_argument(
        "--database-url",
        default=None,
        help="Database URL (defaults to DATABASE_URL / settings)",
    )
    parser.add_argument(
        "--drop",
        action="store_true",
        help="Drop existing DraftSwiss tables first (destroys data)",
    )
    args = parser.parse_args()

    engine = get_engine(args.database_url)
    if args.drop:
        logger.warning("Dropping all tables on %s", engine.url)
        Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    logger.info("Tables ready: %s", ", ".join(sorted(Base.metadata.tables)))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
