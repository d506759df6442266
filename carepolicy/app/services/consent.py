"""Consent store: patients grant and revoke access to clinicians."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

import structlog
from sqlmodel import Session, select

from ..domain.capabilities import ConsentTier
from ..domain.clock import to_storage
from ..domain.models import ConsentRecord
from .resolvers import latest_consent

logger = structlog.get_logger(__name__)


class ConsentService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def grant(
        self,
        patient_id: str,
        clinician_id: str,
        tier: ConsentTier,
        expires_at: Optional[datetime] = None,
    ) -> ConsentRecord:
        """Record a new grant; earlier active grants for the pair are deactivated."""
        now = datetime.utcnow()
        for previous in self._active(patient_id, clinician_id):
            previous.is_active = False
            previous.revoked_at = now
            self.session.add(previous)

        record = ConsentRecord(
            patient_id=patient_id,
            clinician_id=clinician_id,
            tier=tier,
            granted_at=now,
            expires_at=to_storage(expires_at),
        )
        self.session.add(record)
        self.session.flush()
        self.session.refresh(record)
        logger.info(
            "consent granted",
            consent_id=record.id,
            patient_id=patient_id,
            clinician_id=clinician_id,
            tier=ConsentTier(tier).value,
        )
        return record

    def revoke(self, consent_id: str) -> Optional[ConsentRecord]:
        record = self.session.get(ConsentRecord, consent_id)
        if record is None:
            return None
        if record.is_active:
            record.is_active = False
            record.revoked_at = datetime.utcnow()
            self.session.add(record)
            self.session.flush()
            self.session.refresh(record)
            logger.info("consent revoked", consent_id=record.id, patient_id=record.patient_id)
        return record

    def current(self, patient_id: str, clinician_id: str) -> Optional[ConsentRecord]:
        return latest_consent(self.session, patient_id, clinician_id)

    def for_patient(self, patient_id: str) -> List[ConsentRecord]:
        stmt = (
            select(ConsentRecord)
            .where(ConsentRecord.patient_id == patient_id)
            .order_by(ConsentRecord.granted_at.desc())
        )
        return list(self.session.exec(stmt).all())

    def _active(self, patient_id: str, clinician_id: str) -> List[ConsentRecord]:
        stmt = (
            select(ConsentRecord)
            .where(ConsentRecord.patient_id == patient_id)
            .where(ConsentRecord.clinician_id == clinician_id)
            .where(ConsentRecord.is_active == True)  # noqa: E712
        )
        return list(self.session.exec(stmt).all())
