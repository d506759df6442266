"""Appointment store used as the source of treatment relationships."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlmodel import Session, select

from ..domain.clock import to_storage
from ..domain.models import Appointment, AppointmentStatus
from .resolvers import active_relationship


class RelationService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def book(
        self,
        clinician_id: str,
        patient_id: str,
        scheduled_for: Optional[datetime] = None,
        status: AppointmentStatus = AppointmentStatus.SCHEDULED,
    ) -> Appointment:
        appointment = Appointment(
            clinician_id=clinician_id,
            patient_id=patient_id,
            scheduled_for=to_storage(scheduled_for),
            status=status,
        )
        self.session.add(appointment)
        self.session.flush()
        self.session.refresh(appointment)
        return appointment

    def set_status(self, appointment_id: str, status: AppointmentStatus) -> Optional[Appointment]:
        appointment = self.session.get(Appointment, appointment_id)
        if appointment is None:
            return None
        appointment.status = status
        self.session.add(appointment)
        self.session.flush()
        self.session.refresh(appointment)
        return appointment

    def has_active_relation(self, clinician_id: str, patient_id: str) -> bool:
        return active_relationship(self.session, clinician_id, patient_id)

    def for_clinician(self, clinician_id: str) -> List[Appointment]:
        stmt = (
            select(Appointment)
            .where(Appointment.clinician_id == clinician_id)
            .order_by(Appointment.created_at.desc())
        )
        return list(self.session.exec(stmt).all())
