"""Management CLI for receiving operations.

Usage:
    python -m app.cli init-db                                  # Create all tables (dev only)
    python -m app.cli recompute <reception_id>                 # Rebuild discounts
    python -m app.cli price <reception_id>                     # Price at the day's price
    python -m app.cli complete-batch <batch_id> <sacks> <remainder_kg>
"""

import asyncio
import logging
import sys
from decimal import Decimal

from app.config import configure_logging
from app.database import create_all, session_scope
from app.exceptions import ReceivingError, describe_exception
from app.schemas.batch import CacaoBatchComplete
from app.services.batches import complete_batch
from app.services.reception_pricing import (
    calculate_pricing_for_reception,
    recompute_reception,
)
from app.utils.decimals import quantize_money, quantize_weight

logger = logging.getLogger("receiving.cli")

CLI_USER = "cli"

USAGE = (
    "Usage: python -m app.cli "
    "[init-db | recompute <reception_id> | price <reception_id> | "
    "complete-batch <batch_id> <sacks> <remainder_kg>]"
)


async def init_db():
    await create_all()
    print("  Tables created.")


async def recompute(reception_id: str):
    async with session_scope() as db:
        reception = await recompute_reception(db, reception_id, CLI_USER)
        print(f"  {reception.reception_number}")
        print(f"    original  {quantize_weight(reception.original_weight_kg)} kg")
        print(f"    discount  {quantize_weight(reception.total_discount_kg)} kg")
        print(f"    final     {quantize_weight(reception.final_weight_kg)} kg")


async def price(reception_id: str):
    async with session_scope() as db:
        outcome = await calculate_pricing_for_reception(db, reception_id, CLI_USER)
        if not outcome.priced:
            print(f"  Not priced ({outcome.status}): {outcome.message}")
            return
        calc = outcome.calculation
        print(f"  gross     {quantize_money(calc.gross_value)}")
        print(f"  discount  {quantize_money(calc.total_discount_amount)}")
        print(f"  total     {quantize_money(calc.final_total)}")


async def finish_batch(batch_id: str, sacks: str, remainder_kg: str):
    body = CacaoBatchComplete(sack_count=int(sacks), remainder_kg=Decimal(remainder_kg))
    async with session_scope() as db:
        batch = await complete_batch(db, batch_id, body, CLI_USER)
        print(f"  Batch {batch.id}: {quantize_weight(batch.total_dried_weight_kg)} kg dried")


def main(argv: list[str]) -> int:
    configure_logging()
    cmd = argv[1] if len(argv) > 1 else ""
    args = argv[2:]

    commands = {
        "init-db": (init_db, 0),
        "recompute": (recompute, 1),
        "price": (price, 1),
        "complete-batch": (finish_batch, 3),
    }
    if cmd not in commands or len(args) != commands[cmd][1]:
        print(USAGE)
        return 2

    func, _ = commands[cmd]
    try:
        asyncio.run(func(*args))
    except ReceivingError as exc:
        print(f"  FAILED: {describe_exception(exc)['error']['message']}")
        return 1
    except Exception:
        logger.exception("Command %s failed", cmd)
        print("  FAILED: see log for details")
        return 1
    return 0


def cli_entry() -> None:
    sys.exit(main(sys.argv))


if __name__ == "__main__":
    cli_entry()
