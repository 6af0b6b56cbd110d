"""
Database Schema Setup for the Tip Raffle
Creates all tables and indices used by the raffle store
"""

from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError
import logging

logger = logging.getLogger(__name__)

# SQL schema for the raffle (portable between SQLite and PostgreSQL)
RAFFLE_SCHEMA_SQL = """
-- ============================================
-- TIP RAFFLE DATABASE SCHEMA
-- ============================================

-- Participant registrations (field map stored as JSON text)
CREATE TABLE IF NOT EXISTS raffle_submissions (
    id VARCHAR(64) PRIMARY KEY,
    data TEXT NOT NULL,
    created_at TIMESTAMP NOT NULL
);

-- Draw outcomes; submission_data is a snapshot, so no foreign key
CREATE TABLE IF NOT EXISTS raffle_wins (
    id VARCHAR(64) PRIMARY KEY,
    submission_id VARCHAR(64) NOT NULL,
    submission_data TEXT NOT NULL,
    drawn_at TIMESTAMP NOT NULL,
    tip_value TEXT
);

-- Single-row page configuration blob
CREATE TABLE IF NOT EXISTS raffle_config (
    id INTEGER PRIMARY KEY,
    data TEXT NOT NULL,
    updated_at TIMESTAMP NOT NULL
);

-- Banned emails / account ids
CREATE TABLE IF NOT EXISTS raffle_banned (
    id VARCHAR(64) PRIMARY KEY,
    type VARCHAR(20) NOT NULL,  -- email, accountId
    value TEXT NOT NULL,
    reason TEXT,
    created_at TIMESTAMP NOT NULL,
    UNIQUE(type, value)
);

-- Account ids confirmed by the platform postback
CREATE TABLE IF NOT EXISTS validated_players (
    player_id VARCHAR(255) PRIMARY KEY,
    currency VARCHAR(20),
    registration_date TEXT,
    type VARCHAR(50),
    validated_at TIMESTAMP NOT NULL
);

-- ============================================
-- INDICES
-- ============================================

CREATE INDEX IF NOT EXISTS idx_raffle_submissions_created ON raffle_submissions(created_at);
CREATE INDEX IF NOT EXISTS idx_raffle_wins_drawn ON raffle_wins(drawn_at);
CREATE INDEX IF NOT EXISTS idx_raffle_wins_submission ON raffle_wins(submission_id);
"""

REQUIRED_TABLES = [
    'raffle_submissions',
    'raffle_wins',
    'raffle_config',
    'raffle_banned',
    'validated_players',
]


def _split_statements(sql):
    """Split a script into statements; SQLite executes one statement at a time"""
    statements = []
    current_statement = []

    for line in sql.split('\n'):
        stripped = line.strip()
        if not stripped or stripped.startswith('--'):
            continue

        current_statement.append(line)

        if stripped.endswith(';'):
            statements.append('\n'.join(current_statement))
            current_statement = []

    return statements


def setup_raffle_database(engine):
    """
    Create all raffle tables and indices

    Args:
        engine: SQLAlchemy engine instance

    Returns:
        bool: True if successful, False otherwise
    """
    try:
        logger.info("Setting up raffle database schema...")

        with engine.begin() as conn:
            for statement in _split_statements(RAFFLE_SCHEMA_SQL):
                conn.execute(text(statement))

        logger.info("✅ Raffle database schema created successfully")
        return True

    except SQLAlchemyError as e:
        logger.error(f"❌ Failed to setup raffle database: {e}")
        return False


def verify_raffle_schema(engine):
    """
    Verify that all required tables exist

    Returns:
        dict: Status of each table (True/False)
    """
    status = {table: False for table in REQUIRED_TABLES}

    try:
        existing = set(inspect(engine).get_table_names())
        for table in REQUIRED_TABLES:
            status[table] = table in existing
    except SQLAlchemyError as e:
        logger.error(f"Failed to verify schema: {e}")

    return status


if __name__ == "__main__":
    """
    Setup the database schema: python -m tip_raffle.database
    """
    from dotenv import load_dotenv
    from sqlalchemy import create_engine

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    load_dotenv()

    from .config import DATABASE_URL

    engine = create_engine(DATABASE_URL)

    if not setup_raffle_database(engine):
        logger.error("❌ Schema setup failed")
        raise SystemExit(1)

    status = verify_raffle_schema(engine)
    for table, exists in status.items():
        symbol = "✓" if exists else "✗"
        logger.info(f"  {symbol} {table}")
    if not all(status.values()):
        raise SystemExit(1)
