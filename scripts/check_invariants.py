#!/usr/bin/env python3
"""Audit idea/workspace/collaborator/counter invariants.

Usage:
    python scripts/check_invariants.py
    python scripts/check_invariants.py --repair

Prints one line per violation. With --repair, recomputes star/fork/follow/idea
counters from their rows first, then audits again.
Exits 0 when consistent, 1 when violations remain.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from ideahub.db.session import SessionLocal
from ideahub.services.consistency import audit_invariants, repair_counters


def main() -> int:
    parser = argparse.ArgumentParser(description="Audit IdeaHub invariants")
    parser.add_argument("--repair", action="store_true", help="Recompute counters before auditing")
    args = parser.parse_args()

    db = SessionLocal()
    try:
        if args.repair:
            repair_counters(db)
        violations = audit_invariants(db)
        for violation in violations:
            print(violation)
        print(f"violations={len(violations)}")
        return 0 if not violations else 1
    except Exception as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
