#!/usr/bin/env python3
"""
Recalculate the depreciation snapshot of every asset as of today.

Economic life months, accumulated depreciation and residual value are
stored at write time; run this periodically (e.g. monthly) so they follow
the calendar.  Assets whose values move get an ``update`` audit entry.

Usage:
  python3 scripts/recalculate_depreciation.py [--database-url URL]
  python3 scripts/recalculate_depreciation.py --config config/assets.yaml

Prerequisites:
  - DATABASE_URL set (or --database-url given) and the schema created.
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    from inventory_kernel.db.engine import database_url_from_env

    p = argparse.ArgumentParser(description="Recompute stored depreciation values for all assets")
    p.add_argument(
        "--config",
        default=None,
        help="Optional AssetConfig YAML file",
    )
    p.add_argument(
        "--database-url",
        default=database_url_from_env(),
        help="Database URL (default: DATABASE_URL)",
    )
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    from inventory_kernel.db.engine import init_engine_from_url, reset_engine, session_scope
    from inventory_kernel.logging_config import get_logger
    from inventory_modules.assets.config import AssetConfig
    from inventory_modules.assets.service import AssetService

    logger = get_logger("scripts.recalculate_depreciation")

    config = AssetConfig.from_yaml(args.config) if args.config else AssetConfig.with_defaults()

    init_engine_from_url(args.database_url)
    try:
        with session_scope() as session:
            updated = AssetService(session, config=config).refresh_depreciation()
    finally:
        reset_engine()

    logger.info("depreciation_script_finished", extra={"updated_count": updated})
    print(f"  Recalculated depreciation for {updated} assets.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
