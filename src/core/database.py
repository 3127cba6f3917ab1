"""
SQLite database for the API request audit log.
"""

import sqlite3
from pathlib import Path

from core.config import DB_PATH


def get_connection(db_path: Path = DB_PATH) -> sqlite3.Connection:
    """Get a database connection."""
    return sqlite3.connect(db_path)


def init_database(db_path: Path = DB_PATH) -> None:
    """Create the database and tables if they don't exist."""
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = get_connection(db_path)
    try:
        cursor = conn.cursor()
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS api_requests (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                request_id TEXT UNIQUE NOT NULL,
                timestamp TEXT NOT NULL,
                endpoint TEXT NOT NULL,
                method TEXT NOT NULL,
                client_ip TEXT,
                user_id TEXT,
                action_type TEXT,
                status_code INTEGER NOT NULL,
                error_code TEXT,
                error_message TEXT,
                processing_time_ms INTEGER
            )
        """)
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_api_requests_timestamp ON api_requests(timestamp)"
        )
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_api_requests_user ON api_requests(user_id)"
        )
        conn.commit()
    finally:
        conn.close()
