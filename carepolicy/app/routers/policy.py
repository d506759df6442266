"""Role feature checks and capability token verification."""
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status

from ..deps import token_issuer
from ..domain.errors import TokenInvalid
from ..domain.policy import can_access_feature
from ..domain.schemas import FeatureCheckIn, FeatureCheckOut, TokenClaimsOut, TokenVerifyIn
from ..services.tokens import CapabilityTokenIssuer

router = APIRouter()


@router.post("/features/check", response_model=FeatureCheckOut)
def check_feature(payload: FeatureCheckIn) -> FeatureCheckOut:
    return FeatureCheckOut(allowed=can_access_feature(payload.role, payload.feature))


@router.post("/tokens/verify", response_model=TokenClaimsOut)
def verify_token(
    payload: TokenVerifyIn,
    issuer: CapabilityTokenIssuer = Depends(token_issuer),
) -> TokenClaimsOut:
    try:
        claims = issuer.verify(payload.token)
    except TokenInvalid as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    return TokenClaimsOut(
        **{
            **claims,
            "issued_at": datetime.fromisoformat(claims["issued_at"]),
            "expires_at": datetime.fromisoformat(claims["expires_at"]),
        }
    )
