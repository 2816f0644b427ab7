#!/usr/bin/env python3
"""
Retention sweep for the activity history: delete audit log entries older
than N days.

Usage:
  python3 scripts/purge_audit_logs.py [--retention-days 90] [--database-url URL]
  python3 scripts/purge_audit_logs.py --config config/assets.yaml

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

    p = argparse.ArgumentParser(description="Delete audit log entries older than the retention window")
    p.add_argument(
        "--retention-days",
        type=int,
        default=None,
        help="Days to keep (default: audit_retention_days from config, 90)",
    )
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
    from inventory_kernel.services.auditor_service import AuditDiffEngine
    from inventory_modules.assets.config import AssetConfig

    logger = get_logger("scripts.purge_audit_logs")

    config = AssetConfig.from_yaml(args.config) if args.config else AssetConfig.with_defaults()
    retention_days = (
        args.retention_days if args.retention_days is not None else config.audit_retention_days
    )
    if retention_days < 0:
        print("  ERROR: --retention-days must be >= 0", file=sys.stderr)
        return 2

    init_engine_from_url(args.database_url)
    try:
        with session_scope() as session:
            deleted = AuditDiffEngine(session).purge_older_than(retention_days)
    finally:
        reset_engine()

    logger.info(
        "audit_purge_script_finished",
        extra={"retention_days": retention_days, "deleted_count": deleted},
    )
    print(f"  Deleted {deleted} audit log entries older than {retention_days} days.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
