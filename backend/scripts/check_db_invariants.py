from __future__ import annotations

import asyncio
import sys

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from cellkom.core.db import get_engine, get_sessionmaker
from cellkom.ledger.entry import check_invariants
from cellkom.models.installment import Installment
from cellkom.services.installments import to_ledger_entry


async def _main() -> int:
    failures = 0
    try:
        async with get_sessionmaker()() as session:
            rows = (
                await session.execute(select(Installment).options(selectinload(Installment.payments)))
            ).scalars().all()
            for row in rows:
                problems = check_invariants(to_ledger_entry(row))
                seqs = [p.seq for p in row.payments]
                if seqs != list(range(len(seqs))):
                    problems.append(f"payment seq is not contiguous: {seqs}")
                for problem in problems:
                    print(f"Installment {row.id}: {problem}", file=sys.stderr)
                failures += bool(problems)
    finally:
        await get_engine().dispose()

    if failures:
        print(f"{failures} installment(s) violate ledger invariants.", file=sys.stderr)
        return 1
    print(f"DB invariants ok ({len(rows)} installments checked).")
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(_main()))
