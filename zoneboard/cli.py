"""CLI for zoneboard: create tables, seed demo data, print a board."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from datetime import date, time


async def cmd_init_db(args):
    """Create all tables on the configured database."""
    from zoneboard.db.engine import create_tables

    await create_tables()
    print("Tables created")


async def cmd_seed(args):
    """Insert demo customers, technicians and a day of jobs."""
    from zoneboard.db import crud
    from zoneboard.db.engine import async_session_factory, create_tables

    day = date.fromisoformat(args.date)
    await create_tables()

    async with async_session_factory() as db:
        ana = await crud.create_technician(db, "Ana Ruiz", email="ana@example.com", zone="N")
        ben = await crud.create_technician(db, "Ben Okafor", email="ben@example.com", zone="S")
        smith = await crud.create_customer(db, "Smith Residence", city="Springfield")
        lee = await crud.create_customer(db, "Lee Bakery", city="Shelbyville")
        park = await crud.create_customer(db, "Park Dental", city="Springfield")

        seeds = [
            (smith.id, "N", ana.id, time(9), time(11), 1000.0, "Annual furnace service"),
            (lee.id, "N", ana.id, time(13), time(14, 30), 1000.0, "Walk-in cooler leak"),
            (park.id, "S", ben.id, time(8, 30), time(10), 1000.0, "Thermostat replacement"),
            (smith.id, "E", None, None, None, None, "Quote for duct cleaning"),
            (lee.id, None, None, time(17), time(19), None, "Zone not yet assigned"),
        ]
        for customer_id, zone, tech_id, start, end, position, description in seeds:
            await crud.create_job(
                db,
                customer_id=customer_id,
                zone=zone,
                technician_id=tech_id,
                scheduled_date=day,
                scheduled_time_start=start,
                scheduled_time_end=end,
                position=position,
                description=description,
            )

    print(f"Seeded 2 technicians, 3 customers and {len(seeds)} jobs on {day}")


async def cmd_board(args):
    """Print the assembled board for a date as JSON."""
    from zoneboard.db.engine import async_session_factory
    from zoneboard.schedule.actions import list_zone_board

    day = date.fromisoformat(args.date)
    async with async_session_factory() as db:
        board = await list_zone_board(db, day, zones=args.zone or None)

    print(json.dumps(board.model_dump(mode="json"), indent=2))


def main():
    parser = argparse.ArgumentParser(description="Zoneboard CLI")
    subparsers = parser.add_subparsers(dest="command")

    # init-db
    subparsers.add_parser("init-db", help="Create database tables")

    # seed
    sd = subparsers.add_parser("seed", help="Insert demo data for one day")
    sd.add_argument("--date", default=date.today().isoformat(), help="Board date (YYYY-MM-DD)")

    # board
    bd = subparsers.add_parser("board", help="Print the zone board for a date")
    bd.add_argument("--date", required=True, help="Board date (YYYY-MM-DD)")
    bd.add_argument("--zone", action="append", help="Only include this zone (repeatable)")

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == "init-db":
        asyncio.run(cmd_init_db(args))
    elif args.command == "seed":
        asyncio.run(cmd_seed(args))
    elif args.command == "board":
        asyncio.run(cmd_board(args))


if __name__ == "__main__":
    main()
