#!/usr/bin/env python3
"""
Stock reconciliation and batch report.

Compares each product's on-hand counter with the sum of its batch
remainders and with the ledger balance (Σ IN - Σ OUT).  Exits 1 when any
product has drifted.

Usage:
    python3 scripts/stock_report.py reconcile
    python3 scripts/stock_report.py batches PROD-1A2B3C4D
    python3 scripts/stock_report.py --database-url sqlite:///local.db reconcile
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

W = 78


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Warehouse stock report")
    p.add_argument("--config", help="YAML settings file merged over the defaults")
    p.add_argument("--database-url", help="Override the configured database URL")
    sub = p.add_subparsers(dest="command", required=True)
    sub.add_parser("reconcile", help="Counter / batch / ledger comparison per product")
    batches = sub.add_parser("batches", help="Batches of one product, newest first")
    batches.add_argument("product_id")
    return p.parse_args(argv)


def _print_reconciliation(results) -> int:
    print()
    print("=" * W)
    print("STOCK RECONCILIATION".center(W))
    print("=" * W)
    print(f"  {'Product':<16} {'Counter':>10} {'Batches':>10} {'Ledger':>10}  Status")
    print(f"  {'-'*16} {'-'*10} {'-'*10} {'-'*10}  {'-'*8}")
    drifted = 0
    for r in results:
        status = "OK" if r.is_consistent else "DRIFT"
        if not r.is_consistent:
            drifted += 1
        print(
            f"  {r.product_id:<16} {r.product_quantity:>10} "
            f"{r.batch_remaining:>10} {r.ledger_balance:>10}  {status}"
        )
    print()
    print(f"  {len(results)} products, {drifted} drifted")
    return 1 if drifted else 0


def _print_batches(product_id: str, batches) -> int:
    print()
    print(f"  Batches for {product_id}")
    print(f"  {'Batch':<16} {'In':>8} {'Remaining':>10} {'Unit cost':>10}  PO")
    for b in batches:
        print(
            f"  {b.batch_id:<16} {b.quantity_in:>8} {b.quantity_remaining:>10} "
            f"{b.unit_cost:>10}  {b.po_id or '-'}"
        )
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    from warehouse_config import get_active_config
    from warehouse_kernel.db.engine import init_engine_from_url, reset_engine, session_scope
    from warehouse_kernel.exceptions import ProductNotFoundError
    from warehouse_modules.inventory.service import InventoryService

    settings = get_active_config(args.config)
    init_engine_from_url(args.database_url or settings.database.url)
    try:
        with session_scope() as session:
            service = InventoryService(session, config=settings.inventory)
            if args.command == "reconcile":
                return _print_reconciliation(service.reconcile_all())
            try:
                return _print_batches(
                    args.product_id, service.batches_for_product(args.product_id),
                )
            except ProductNotFoundError as exc:
                print(f"  ERROR: {exc}", file=sys.stderr)
                return 2
    finally:
        reset_engine()


if __name__ == "__main__":
    sys.exit(main())
