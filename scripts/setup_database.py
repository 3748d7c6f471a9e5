# scripts/setup_database.py
#!/usr/bin/env python
"""
Simple database setup script for a fresh database.
Creates the wellness_plans table without going through alembic.
"""
import sys
from pathlib import Path
sys.path.append(str(Path(__file__).parent.parent))

from cathealth.core.database import engine, Base
import cathealth.db.models  # noqa: F401
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

def main():
    """Create all tables"""
    try:
        logger.info("Creating database tables...")
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully!")

        logger.info("\n✅ Database setup complete!")
        logger.info("You can now start the application with: uvicorn cathealth.main:app --reload")

    except Exception as e:
        logger.error(f"❌ Error setting up database: {str(e)}")
        sys.exit(1)

if __name__ == "__main__":
    main()
