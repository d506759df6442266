"""Authorization routes: decide, then optionally project a record."""
from fastapi import APIRouter, Depends, HTTPException, status

from ..deps import access_engine, token_issuer
from ..domain.errors import AuditSinkUnavailable, InvalidRequest
from ..domain.models import AccessDecision
from ..domain.projection import project
from ..domain.schemas import (
    AccessDecisionOut,
    AuthorizeRequest,
    ProjectRequest,
    ProjectResponse,
)
from ..services.engine import AccessDecisionEngine
from ..services.tokens import CapabilityTokenIssuer

router = APIRouter()


async def _decide(body: AuthorizeRequest, engine: AccessDecisionEngine) -> AccessDecision:
    try:
        return await engine.authorize(
            actor_id=body.actor_id,
            actor_role=body.actor_role,
            patient_id=body.patient_id,
            requested=body.requested(),
            action=body.action,
            resource_type=body.resource_type,
            resource_id=body.resource_id,
            justification=body.justification,
        )
    except InvalidRequest as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except AuditSinkUnavailable as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Access decision could not be recorded",
        ) from exc


def _out(body: AuthorizeRequest, decision: AccessDecision, issuer: CapabilityTokenIssuer) -> AccessDecisionOut:
    token = issuer.issue(body.actor_id, body.patient_id, decision) if decision.granted else None
    return AccessDecisionOut.from_decision(decision, token=token)


@router.post("", response_model=AccessDecisionOut)
async def authorize(
    body: AuthorizeRequest,
    engine: AccessDecisionEngine = Depends(access_engine),
    issuer: CapabilityTokenIssuer = Depends(token_issuer),
) -> AccessDecisionOut:
    """Decide an access attempt. A deny is a normal 200 response."""
    decision = await _decide(body, engine)
    return _out(body, decision, issuer)


@router.post("/project", response_model=ProjectResponse)
async def authorize_and_project(
    body: ProjectRequest,
    engine: AccessDecisionEngine = Depends(access_engine),
    issuer: CapabilityTokenIssuer = Depends(token_issuer),
) -> ProjectResponse:
    decision = await _decide(body, engine)
    return ProjectResponse(
        decision=_out(body, decision, issuer),
        record=project(body.record, decision.capabilities) if decision.granted else None,
    )
