#!/usr/bin/env python3
"""
Create the warehouse schema from the active settings.

Usage:
    python3 scripts/init_db.py
    python3 scripts/init_db.py --config settings.yaml
    python3 scripts/init_db.py --database-url sqlite:///local.db --drop
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Create the warehouse database schema")
    p.add_argument("--config", help="YAML settings file merged over the defaults")
    p.add_argument("--database-url", help="Override the configured database URL")
    p.add_argument("--drop", action="store_true", help="Drop existing tables first")
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    from warehouse_config import get_active_config
    from warehouse_kernel.db.engine import drop_tables, init_engine_from_url, reset_engine
    from warehouse_kernel.logging_config import configure_logging, get_logger
    from warehouse_modules._orm_registry import create_all_tables, import_all_orm_models

    settings = get_active_config(args.config)
    configure_logging(level=settings.logging.level_number)
    logger = get_logger("scripts.init_db")

    url = args.database_url or settings.database.url
    init_engine_from_url(
        url,
        echo=settings.database.echo,
        pool_size=settings.database.pool_size,
        max_overflow=settings.database.max_overflow,
    )
    try:
        if args.drop:
            import_all_orm_models()
            drop_tables()
            logger.info("tables_dropped")
        create_all_tables()
    finally:
        reset_engine()

    print(f"  Schema ready at {url}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
