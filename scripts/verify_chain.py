#!/usr/bin/env python3
"""
Verify the carepolicy audit hash chain for tamper detection.

Usage:
    python scripts/verify_chain.py [--database-url ...] [--json]
"""
from __future__ import annotations

import argparse
import json
import os
import sys

from carepolicy.app.infra.db import make_engine, session_scope
from carepolicy.app.services.audit import AuditQuery


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Verify audit chain integrity.")
    parser.add_argument(
        "--database-url",
        default=os.getenv("DATABASE_URL", "sqlite:///./carepolicy.db"),
        help="Database URL (SQLAlchemy compatible)",
    )
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    scope = session_scope(make_engine(args.database_url))
    with scope() as db:
        report = AuditQuery(db).verify_chain()

    if args.json:
        print(json.dumps(report.as_dict(), indent=2))
    elif report.ok:
        print(f"Verified {report.checked} audit entries; chain intact")
    else:
        for problem in report.problems:
            print(f"[WARN] {problem}", file=sys.stderr)
        print(f"{len(report.problems)} problem(s) in {report.checked} audit entries")
    return 0 if report.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
