"""Emergency episode routes feeding the override check."""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session

from ..deps import db_session
from ..domain.models import EmergencyEpisodeRead
from ..domain.schemas import EmergencyCheckOut, EmergencyOpenIn, EmergencyStatusUpdate
from ..services.emergency import EmergencyService

router = APIRouter()


@router.post("/", response_model=EmergencyEpisodeRead, status_code=status.HTTP_201_CREATED)
def open_episode(payload: EmergencyOpenIn, session: Session = Depends(db_session)):
    return EmergencyService(session).open(payload.patient_id, reason=payload.reason)


@router.patch("/{episode_id}", response_model=EmergencyEpisodeRead)
def update_episode(
    episode_id: str,
    payload: EmergencyStatusUpdate,
    session: Session = Depends(db_session),
):
    episode = EmergencyService(session).set_status(episode_id, payload.status)
    if not episode:
        raise HTTPException(status_code=404, detail="Emergency episode not found")
    return episode


@router.get("/active/{patient_id}", response_model=EmergencyCheckOut)
def check_active(patient_id: str, session: Session = Depends(db_session)):
    return EmergencyCheckOut(
        has_active_emergency=EmergencyService(session).has_active_emergency(patient_id)
    )
