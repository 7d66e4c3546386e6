# main.py
import argparse
import asyncio
import logging
from catalog.config import setup_logging
from catalog.database.database import Database
from catalog.database.seed import seed_catalog
from catalog.services.report_service import ReportService
from catalog.utils.formatters import format_inventory_report

async def main(command: str):
    # Setup logging
    setup_logging()
    logger = logging.getLogger(__name__)

    db = Database()
    try:
        # connect() applies pending migrations
        await db.connect()

        if command == "seed":
            await seed_catalog(db)
        elif command == "report":
            report = await ReportService(db).get_inventory_report()
            print(format_inventory_report(report))
    except Exception as e:
        logger.error(f"Command {command} failed: {e}", exc_info=True)
        raise
    finally:
        await db.close()

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Catalog maintenance commands")
    parser.add_argument("command", choices=["migrate", "seed", "report"])
    args = parser.parse_args()
    asyncio.run(main(args.command))
