#!/usr/bin/env python3
"""
Audit the points ledger.

Checks that every location's points_total equals the sum of points_awarded
over its scan sessions. Exits non-zero if any location disagrees.

Usage:
    python scripts/verify_ledger.py
    python scripts/verify_ledger.py --db /data/rescan.db
"""

import argparse
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from rescan.config import Config
from rescan.exceptions import PersistenceError
from rescan.services.ledger import LedgerStore


def main():
    parser = argparse.ArgumentParser(
        description="Verify location totals against scan history"
    )
    parser.add_argument(
        "--db",
        default=Config.database_path(),
        help="SQLite database path"
    )
    args = parser.parse_args()

    if not Path(args.db).exists():
        print(f"Error: Database not found: {args.db}", file=sys.stderr)
        sys.exit(1)

    store = LedgerStore(args.db, initialize=False)
    try:
        discrepancies = store.verify_ledger()
        scan_count = store.count_scans()
    except PersistenceError as e:
        print(f"Error reading ledger: {e.message}", file=sys.stderr)
        sys.exit(1)
    finally:
        store.close()

    print(f"Scans audited: {scan_count}")
    if not discrepancies:
        print("Ledger OK: every total matches its scan history")
        return

    print(f"{len(discrepancies)} location(s) out of balance:")
    print(f"  {'Location':<40} {'Total':>8} {'Scans':>8}")
    for d in discrepancies:
        print(f"  {d.location_key[:40]:<40} {d.points_total:>8} {d.scan_points_sum:>8}")
    sys.exit(2)


if __name__ == "__main__":
    main()
