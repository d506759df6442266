"""Consent management routes."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session

from ..deps import db_session
from ..domain.models import ConsentRecordRead
from ..domain.schemas import ConsentGrantIn
from ..services.consent import ConsentService

router = APIRouter()


@router.post("/", response_model=ConsentRecordRead, status_code=status.HTTP_201_CREATED)
def grant_consent(payload: ConsentGrantIn, session: Session = Depends(db_session)):
    return ConsentService(session).grant(
        patient_id=payload.patient_id,
        clinician_id=payload.clinician_id,
        tier=payload.tier,
        expires_at=payload.expires_at,
    )


@router.post("/{consent_id}/revoke", response_model=ConsentRecordRead)
def revoke_consent(consent_id: str, session: Session = Depends(db_session)):
    record = ConsentService(session).revoke(consent_id)
    if not record:
        raise HTTPException(status_code=404, detail="Consent not found")
    return record


@router.get("/{patient_id}", response_model=List[ConsentRecordRead])
def list_consents(patient_id: str, session: Session = Depends(db_session)):
    return ConsentService(session).for_patient(patient_id)


@router.get("/{patient_id}/{clinician_id}", response_model=ConsentRecordRead)
def current_consent(patient_id: str, clinician_id: str, session: Session = Depends(db_session)):
    record = ConsentService(session).current(patient_id, clinician_id)
    if not record:
        raise HTTPException(status_code=404, detail="Consent not found")
    return record
