#!/usr/bin/env python3
"""Seed the carepolicy DB with demo appointments, consents and emergencies."""
from __future__ import annotations

import argparse
import os
from datetime import datetime, timedelta

from carepolicy.app.domain.capabilities import ConsentTier
from carepolicy.app.infra.db import init_db, make_engine, session_scope
from carepolicy.app.services.consent import ConsentService
from carepolicy.app.services.emergency import EmergencyService
from carepolicy.app.services.relations import RelationService

TIERS = [ConsentTier.FULL_ACCESS, ConsentTier.CONSULTATION_ONLY, ConsentTier.EMERGENCY_ONLY]


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed DB with demo care relationships")
    parser.add_argument("--patients", type=int, default=3)
    parser.add_argument(
        "--database-url",
        default=os.getenv("DATABASE_URL", "sqlite:///./carepolicy.db"),
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    engine = make_engine(args.database_url)
    init_db(engine)
    scope = session_scope(engine)
    with scope() as db:
        for idx in range(1, args.patients + 1):
            doctor_id = f"doc-{idx}"
            patient_id = f"pat-{idx}"
            RelationService(db).book(
                doctor_id, patient_id, scheduled_for=datetime.utcnow() + timedelta(days=idx)
            )
            ConsentService(db).grant(
                patient_id,
                doctor_id,
                TIERS[(idx - 1) % len(TIERS)],
                expires_at=datetime.utcnow() + timedelta(days=30),
            )
        # last patient also has an emergency in progress
        EmergencyService(db).open(f"pat-{args.patients}", reason="demo transport")
    print(f"Seeded {args.patients} demo patients.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
