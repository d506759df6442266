#!/usr/bin/env python3
"""
Export a patient's audit entries as a sealed, verifiable trail (JSON).

The export is a fresh chain: entry ids and timestamps match ``audit_entries``
but hashes are recomputed over the selected entries alone, so a reviewer can
verify it offline with ``AuditTrail.from_dict(...).verify()``. Use
``verify_chain.py`` to check the ledger itself.

Usage:
    python scripts/export_trail.py --patient-id <id> [--database-url ...]
"""
from __future__ import annotations

import argparse
import os

from carepolicy.app.infra.db import make_engine, session_scope
from carepolicy.app.services.audit import AuditQuery
from carepolicy.trail import AuditTrail


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Export a patient's audit trail")
    p.add_argument("--patient-id", required=True)
    p.add_argument("--limit", type=int, default=1000)
    p.add_argument(
        "--database-url",
        default=os.getenv("DATABASE_URL", "sqlite:///./carepolicy.db"),
    )
    return p.parse_args()


def main() -> int:
    args = parse_args()
    scope = session_scope(make_engine(args.database_url))
    with scope() as db:
        entries = AuditQuery(db).search(patient_id=args.patient_id, limit=args.limit)
        trail = AuditTrail.rechain(reversed(entries))
    print(trail.to_json())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
