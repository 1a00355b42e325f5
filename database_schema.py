import sqlite3
import os
import logging
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

DB_PATH = Path(os.path.dirname(os.path.abspath(__file__))) / "data" / "breed_classification.db"

def create_database(db_path: Union[str, Path] = DB_PATH):
    """Create the SQLite database and tables if they don't exist"""
    os.makedirs(os.path.dirname(os.path.abspath(db_path)), exist_ok=True)

    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()

    # One row per (animal_id, user_id), overwritten on each classification
    cursor.execute('''
    CREATE TABLE IF NOT EXISTS animal_records (
        id TEXT PRIMARY KEY,
        animal_id TEXT NOT NULL,
        user_id TEXT NOT NULL,
        animal_type TEXT NOT NULL,
        predicted_breed TEXT,
        confidence_score REAL,
        image_url TEXT,
        verification_status TEXT NOT NULL DEFAULT 'pending',
        created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
        updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
        UNIQUE(animal_id, user_id)
    )
    ''')

    # Append-only prediction log
    cursor.execute('''
    CREATE TABLE IF NOT EXISTS breed_predictions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        animal_record_id TEXT NOT NULL,
        image_url TEXT,
        predicted_breeds TEXT NOT NULL,
        model_version TEXT NOT NULL,
        processing_time_ms INTEGER,
        created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
        FOREIGN KEY (animal_record_id) REFERENCES animal_records (id)
    )
    ''')

    cursor.execute('CREATE INDEX IF NOT EXISTS idx_predictions_record ON breed_predictions (animal_record_id)')

    conn.commit()
    conn.close()

    logger.info(f"Database created at {db_path}")

def clear_database(db_path: Union[str, Path] = DB_PATH):
    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()
    cursor.execute('DELETE FROM breed_predictions')
    cursor.execute('DELETE FROM animal_records')
    conn.commit()
    conn.close()

    logger.info(f"Database cleared at {db_path}")

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_database()
