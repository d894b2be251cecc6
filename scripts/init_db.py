"""
Database initialisation script (creates all tables)
"""
import sys
import os

# Add the project root to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from config.settings import settings
from mediation.db.connection import db_manager
from mediation.utils.logger import setup_logging, get_logger

setup_logging()
logger = get_logger(__name__)


def init_database():
    """Create the schema from the ORM models"""
    try:
        db_manager.create_tables()
        logger.info(f"Database initialised: {settings.database_url.split('@')[-1]}")
    except Exception as e:
        logger.error(f"Database initialisation failed: {str(e)}")
        raise
    finally:
        db_manager.close()


if __name__ == "__main__":
    init_database()
