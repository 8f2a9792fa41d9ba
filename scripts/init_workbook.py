"""Workbook bootstrap script.

Creates the local workbook used by the ``workbook`` store backend:
- One sheet per entity (Cars, Repairs, Sales, Rentals, Partners)
- Header row on every sheet
- The fixed partner set (``PARTNER_NAMES``) as P1, P2, ...

Also creates the bookkeeping database tables.

Usage:
    python scripts/init_workbook.py            # refuses to overwrite
    python scripts/init_workbook.py --force    # back up and recreate
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

# Add backend to path so we can import carfleet modules
SCRIPT_DIR = Path(__file__).resolve().parent
PROJECT_DIR = SCRIPT_DIR.parent
BACKEND_DIR = PROJECT_DIR / "backend"
sys.path.insert(0, str(BACKEND_DIR))

from carfleet.config import settings
from carfleet.database import init_db
from carfleet.sheets.workbook import WorkbookStore, create_backup


async def main(force: bool) -> int:
    path = settings.WORKBOOK_PATH
    if path.exists():
        if not force:
            print(f"Workbook already exists: {path} (use --force to recreate)")
            return 1
        backup = create_backup(path)
        print(f"Backed up existing workbook to {backup}")

    settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
    print("Initializing database...")
    await init_db()

    store = WorkbookStore(path, backup=False)
    store.create_workbook(partners=settings.PARTNER_NAMES)
    print(f"Created {path}")
    for position, name in enumerate(settings.PARTNER_NAMES, 1):
        print(f"  P{position}: {name}")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the fleet workbook")
    parser.add_argument("--force", action="store_true", help="recreate an existing workbook")
    args = parser.parse_args()
    sys.exit(asyncio.run(main(args.force)))
