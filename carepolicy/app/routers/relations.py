"""Appointment routes backing the treatment-relationship check."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session

from ..deps import db_session
from ..domain.models import AppointmentRead
from ..domain.schemas import AppointmentIn, AppointmentStatusUpdate, RelationCheckOut
from ..services.relations import RelationService

router = APIRouter()


@router.post("/appointments", response_model=AppointmentRead, status_code=status.HTTP_201_CREATED)
def book_appointment(payload: AppointmentIn, session: Session = Depends(db_session)):
    return RelationService(session).book(
        clinician_id=payload.clinician_id,
        patient_id=payload.patient_id,
        scheduled_for=payload.scheduled_for,
        status=payload.status,
    )


@router.patch("/appointments/{appointment_id}", response_model=AppointmentRead)
def update_appointment(
    appointment_id: str,
    payload: AppointmentStatusUpdate,
    session: Session = Depends(db_session),
):
    appointment = RelationService(session).set_status(appointment_id, payload.status)
    if not appointment:
        raise HTTPException(status_code=404, detail="Appointment not found")
    return appointment


@router.get("/appointments/{clinician_id}", response_model=List[AppointmentRead])
def clinician_appointments(clinician_id: str, session: Session = Depends(db_session)):
    return RelationService(session).for_clinician(clinician_id)


@router.get("/{clinician_id}/{patient_id}", response_model=RelationCheckOut)
def check_relation(clinician_id: str, patient_id: str, session: Session = Depends(db_session)):
    return RelationCheckOut(
        has_active_relation=RelationService(session).has_active_relation(clinician_id, patient_id)
    )
