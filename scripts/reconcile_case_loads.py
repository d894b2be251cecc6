"""
Repair panelist case loads from their active assignments

Usage:
    python scripts/reconcile_case_loads.py [--dry-run]
"""
import sys
import os
import argparse

# Add the project root to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from mediation.db.connection import db_manager
from mediation.services.reconciliation import reconcile_case_loads
from mediation.utils.logger import setup_logging, get_logger

setup_logging()
logger = get_logger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Recount panelist case loads")
    parser.add_argument("--dry-run", action="store_true", help="report drift without fixing it")
    args = parser.parse_args()
    
    try:
        changes = reconcile_case_loads(dry_run=args.dry_run)
    finally:
        db_manager.close()
    
    if not changes:
        print("All case loads match their active assignments")
        return
    
    print(f"{'Would fix' if args.dry_run else 'Fixed'} {len(changes)} panelist(s):")
    for change in changes:
        print(
            f"  {change['panelist_id']}: {change['recorded_load']} -> {change['actual_load']} "
            f"({change['availability_status']})"
        )


if __name__ == "__main__":
    main()
