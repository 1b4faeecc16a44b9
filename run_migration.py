"""
SQL migration runner
Usage: python run_migration.py migrations/<migration_file.sql>
"""

import logging
import sys
from pathlib import Path

from sqlalchemy import text

from booking_api.database import engine

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)


def split_statements(sql: str) -> list[str]:
    """Split a script on ';', dropping comment lines and empty statements"""
    lines = [line for line in sql.splitlines() if not line.strip().startswith("--")]
    return [s.strip() for s in "\n".join(lines).split(";") if s.strip()]


def run_migration(migration_file_path: str, bind=engine) -> int:
    """Run every statement of a SQL migration file in one transaction"""
    migration_file = Path(migration_file_path)
    if not migration_file.exists():
        raise FileNotFoundError(f"Migration file not found: {migration_file}")

    if bind.dialect.name != "postgresql":
        logger.warning(f"Skipping {migration_file.name}: migrations target PostgreSQL, not {bind.dialect.name}")
        return 0

    statements = split_statements(migration_file.read_text())
    logger.info(f"Found {len(statements)} SQL statements in {migration_file.name}")

    with bind.begin() as conn:
        for i, stmt in enumerate(statements, 1):
            logger.info(f"Executing statement {i}/{len(statements)}...")
            conn.execute(text(stmt))

    logger.info("✅ Migration completed successfully!")
    return len(statements)


if __name__ == "__main__":
    if len(sys.argv) < 2:
        logger.error("Usage: python run_migration.py <migration_file.sql>")
        sys.exit(1)

    try:
        run_migration(sys.argv[1])
    except Exception as e:
        logger.error(f"❌ Migration failed: {e}")
        sys.exit(1)
