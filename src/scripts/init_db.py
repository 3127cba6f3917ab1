#!/usr/bin/env python3
"""Create the calendar-assistant SQLite database and data directories."""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import DB_PATH, TOKENS_DIR
from core.database import init_database


def main():
    TOKENS_DIR.mkdir(parents=True, exist_ok=True)
    init_database()
    print(f"Database ready at {DB_PATH}")
    print(f"Token storage at {TOKENS_DIR}")


if __name__ == "__main__":
    main()
