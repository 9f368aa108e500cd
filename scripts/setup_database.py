# scripts/setup_database.py
import sys
from pathlib import Path

# Ensure project root is on the path when running this script directly
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import asyncio

from palletflow.config.settings import get_settings
from palletflow.infrastructure.database.session import Database


async def setup_database():
    settings = get_settings()
    database = Database.from_settings(settings)
    await database.connect()
    try:
        await database.create_schema()
        print("Schema ready:", settings.database_url)
    finally:
        await database.shutdown()


asyncio.run(setup_database())
