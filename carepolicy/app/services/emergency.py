"""Emergency-transport episodes, reduced to what the override check needs."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

import structlog
from sqlmodel import Session

from ..domain.models import CLOSED_EMERGENCY_STATUSES, EmergencyEpisode, EmergencyStatus
from .resolvers import active_emergency

logger = structlog.get_logger(__name__)


class EmergencyService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def open(self, patient_id: str, reason: Optional[str] = None) -> EmergencyEpisode:
        episode = EmergencyEpisode(patient_id=patient_id, reason=reason)
        self.session.add(episode)
        self.session.flush()
        self.session.refresh(episode)
        logger.warning("emergency episode opened", episode_id=episode.id, patient_id=patient_id)
        return episode

    def set_status(self, episode_id: str, status: EmergencyStatus) -> Optional[EmergencyEpisode]:
        episode = self.session.get(EmergencyEpisode, episode_id)
        if episode is None:
            return None
        episode.status = status
        if status in CLOSED_EMERGENCY_STATUSES and episode.closed_at is None:
            episode.closed_at = datetime.utcnow()
        self.session.add(episode)
        self.session.flush()
        self.session.refresh(episode)
        return episode

    def has_active_emergency(self, patient_id: str) -> bool:
        return active_emergency(self.session, patient_id)
