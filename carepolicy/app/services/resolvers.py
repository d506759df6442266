"""Relationship, consent and emergency lookups consumed by the engine.

Each resolver answers one question and either returns or raises; the engine
bounds every call with its own timeout. SQL-backed resolvers open a short
session per call and run the blocking query in a worker thread so the
relationship and consent lookups can proceed in parallel.
"""
from __future__ import annotations

import asyncio
from typing import Dict, Iterable, Optional, Protocol, Set, Tuple

from sqlmodel import Session, select

from ..domain.models import (
    CLOSED_APPOINTMENT_STATUSES,
    CLOSED_EMERGENCY_STATUSES,
    Appointment,
    ConsentRecord,
    EmergencyEpisode,
)
from ..infra.db import SessionFactory


class RelationshipResolver(Protocol):
    async def has_active_relationship(self, clinician_id: str, patient_id: str) -> bool:
        ...


class ConsentResolver(Protocol):
    async def find_consent(self, patient_id: str, clinician_id: str) -> Optional[ConsentRecord]:
        ...


class EmergencyResolver(Protocol):
    async def has_active_emergency(self, patient_id: str) -> bool:
        ...


def active_relationship(session: Session, clinician_id: str, patient_id: str) -> bool:
    stmt = (
        select(Appointment.id)
        .where(Appointment.clinician_id == clinician_id)
        .where(Appointment.patient_id == patient_id)
        .where(Appointment.status.notin_(tuple(CLOSED_APPOINTMENT_STATUSES)))
        .limit(1)
    )
    return session.exec(stmt).first() is not None


def latest_consent(session: Session, patient_id: str, clinician_id: str) -> Optional[ConsentRecord]:
    """Most recent grant for the pair, active or not, so the caller can tell
    revoked and expired consent apart from none at all."""
    stmt = (
        select(ConsentRecord)
        .where(ConsentRecord.patient_id == patient_id)
        .where(ConsentRecord.clinician_id == clinician_id)
        .order_by(ConsentRecord.granted_at.desc())
        .limit(1)
    )
    return session.exec(stmt).first()


def active_emergency(session: Session, patient_id: str) -> bool:
    stmt = (
        select(EmergencyEpisode.id)
        .where(EmergencyEpisode.patient_id == patient_id)
        .where(EmergencyEpisode.status.notin_(tuple(CLOSED_EMERGENCY_STATUSES)))
        .limit(1)
    )
    return session.exec(stmt).first() is not None


class _SQLResolver:
    def __init__(self, session_factory: SessionFactory) -> None:
        self.session_factory = session_factory

    def _run(self, query, *args):
        with self.session_factory() as session:
            result = query(session, *args)
            if result is not None and not isinstance(result, bool):
                session.expunge(result)
            return result

    async def _query(self, query, *args):
        return await asyncio.to_thread(self._run, query, *args)


class SQLRelationshipResolver(_SQLResolver):
    async def has_active_relationship(self, clinician_id: str, patient_id: str) -> bool:
        return await self._query(active_relationship, clinician_id, patient_id)


class SQLConsentResolver(_SQLResolver):
    async def find_consent(self, patient_id: str, clinician_id: str) -> Optional[ConsentRecord]:
        return await self._query(latest_consent, patient_id, clinician_id)


class SQLEmergencyResolver(_SQLResolver):
    async def has_active_emergency(self, patient_id: str) -> bool:
        return await self._query(active_emergency, patient_id)


class StaticRelationshipResolver:
    def __init__(self, pairs: Iterable[Tuple[str, str]] = ()) -> None:
        self.pairs: Set[Tuple[str, str]] = set(pairs)

    async def has_active_relationship(self, clinician_id: str, patient_id: str) -> bool:
        return (clinician_id, patient_id) in self.pairs


class StaticConsentResolver:
    def __init__(self, records: Iterable[ConsentRecord] = ()) -> None:
        self.records: Dict[Tuple[str, str], ConsentRecord] = {}
        for record in records:
            self.add(record)

    def add(self, record: ConsentRecord) -> None:
        self.records[(record.patient_id, record.clinician_id)] = record

    async def find_consent(self, patient_id: str, clinician_id: str) -> Optional[ConsentRecord]:
        return self.records.get((patient_id, clinician_id))


class StaticEmergencyResolver:
    def __init__(self, patients: Iterable[str] = ()) -> None:
        self.patients: Set[str] = set(patients)

    async def has_active_emergency(self, patient_id: str) -> bool:
        return patient_id in self.patients
