"""
Open next year's leave balances from this year's (year-end rollover).

Each balance of --from-year becomes a --to-year balance allocated with the
leave type's days_allowed, plus the unused days when the type carries forward.
Existing --to-year balances are overwritten.

Usage: python -m hrms.scripts.rollover_leave_balances --from-year 2024 --to-year 2025
"""

import argparse
import asyncio
import sys
from datetime import date
from typing import List, Optional

from hrms.api.v1.leave_balances.service import rollover_year
from hrms.auth.models import User  # noqa: F401
from hrms.core.exceptions import ServiceError
from hrms.core.logging import setup_logging
from hrms.db.session import AsyncSessionLocal


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    current = date.today().year
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--from-year", type=int, default=current, help=f"Source year (default {current})")
    parser.add_argument("--to-year", type=int, default=None, help="Target year (default: from-year + 1)")
    args = parser.parse_args(argv)
    if args.to_year is None:
        args.to_year = args.from_year + 1
    return args


async def run(from_year: int, to_year: int) -> int:
    async with AsyncSessionLocal() as session:
        try:
            result = await rollover_year(session, from_year, to_year)
        except ServiceError as e:
            print("Rollover failed:", e.message)
            return 1
    print(f"Rolled over {from_year} -> {to_year}: {result.created} created, {result.updated} updated.")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    setup_logging()
    args = parse_args(argv)
    return asyncio.run(run(args.from_year, args.to_year))


if __name__ == "__main__":
    sys.exit(main())
