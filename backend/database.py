from motor.motor_asyncio import AsyncIOMotorClient
from dotenv import load_dotenv
from pathlib import Path
import os

ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

mongo_url = os.environ.get('MONGO_URL', 'mongodb://localhost:27017')
client = AsyncIOMotorClient(mongo_url)
db = client[os.environ.get('DB_NAME', 'mterp')]


async def ensure_indexes(database):
    """Unique indexes backing the slip invariants and the numbering counters."""
    await database.payroll_slips.create_index(
        [("worker_id", 1), ("period.start_date", 1), ("period.end_date", 1)],
        unique=True,
        name="uq_worker_period"
    )
    await database.payroll_slips.create_index("slip_number", unique=True, name="uq_slip_number")
    await database.payroll_slips.create_index("id", unique=True)
    await database.counters.create_index("id", unique=True)
