"""Print the most recent observations stored in the project's SQLite database.

Uses the same configuration as the application (`DATABASE_DIR`, or the
repository `database` folder by default) through `utils.app_config.AppConfig`.

Run: `python print_db.py [--limit N] [--raw]`.
"""
import argparse
import asyncio

from dotenv import load_dotenv

from dal.observation_dal import RECENT_LIMIT, ObservationDAL
from models.observation_record import ObservationRecord
from utils.app_config import AppConfig
from utils.database_init import AsyncDatabaseInitializer


def _format_record(record: ObservationRecord, show_raw: bool) -> str:
    """Return a one-line summary of a record, plus the raw response when requested."""
    confidence = "N/A" if record.confidence is None else f"{record.confidence:.2f}"
    line = (
        f"#{record.id} {record.created_at} {record.filename} "
        f"label={record.label!r} age={record.estimated_age!r} confidence={confidence}"
    )
    if show_raw and record.raw_response:
        line += f"\n    raw_response={record.raw_response}"
    return line


async def main(limit: int, show_raw: bool) -> None:
    """Ensure the DB exists and print recent observations, newest first."""
    config = AppConfig.from_env()
    dal = ObservationDAL(AsyncDatabaseInitializer(config.database_dir))
    records = await dal.list_recent(limit)
    if not records:
        print("No observations stored.")
        return
    for record in records:
        print(_format_record(record, show_raw))


if __name__ == "__main__":
    load_dotenv()
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--limit", type=int, default=RECENT_LIMIT)
    parser.add_argument("--raw", action="store_true", help="also print the stored inference response")
    args = parser.parse_args()
    asyncio.run(main(args.limit, args.raw))
