import logging
import sys
import argparse

from database_schema import DB_PATH, clear_database, create_database

# Configure logging to output to console
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)
logger = logging.getLogger(__name__)

def parse_args(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(description='Set up the local breed classification database')
    parser.add_argument('--db-path', default=str(DB_PATH), help='Path of the SQLite database file')
    parser.add_argument('--clear', action='store_true', help='Clear existing animal records and prediction logs')
    return parser.parse_args(argv)

def main(argv=None) -> int:
    """Create the SQLite schema used by the sqlite datastore backend"""
    args = parse_args(argv)

    logger.info("Starting database setup...")
    try:
        create_database(args.db_path)
        logger.info("Database schema created successfully")

        if args.clear:
            clear_database(args.db_path)
    except Exception as e:
        logger.exception(f"Error setting up database: {e}")
        return 1

    logger.info("Database setup completed!")
    return 0

if __name__ == "__main__":
    sys.exit(main())
