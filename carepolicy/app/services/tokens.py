"""Short-lived signed capability tokens.

A token records what a granted decision allowed and until when. Callers
re-verify it right before touching patient data, which bounds the window
between the consent check and the use of the data to the token TTL.
"""
from __future__ import annotations

import base64
import json
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from cryptography.exceptions import InvalidSignature

from ..domain.capabilities import CapabilitySet
from ..domain.chain import canonical_bytes
from ..domain.clock import as_utc, utcnow
from ..domain.errors import TokenInvalid
from ..domain.models import AccessDecision
from ..domain.sign import generate_keypair, public_key_for, sign_message, verify_signature


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64decode(text: str) -> bytes:
    return base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))


class CapabilityTokenIssuer:
    def __init__(
        self,
        private_key: Optional[bytes] = None,
        ttl: int = 300,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.private_key = private_key or generate_keypair()[0]
        self.public_key = public_key_for(self.private_key)
        self.ttl = timedelta(seconds=ttl)
        self.clock = clock

    def issue(self, actor_id: str, patient_id: str, decision: AccessDecision) -> str:
        if not decision.granted:
            raise ValueError("tokens are only issued for granted decisions")
        issued_at = as_utc(self.clock())
        claims = {
            "actor_id": actor_id,
            "patient_id": patient_id,
            "capabilities": decision.capabilities.names(),
            "via_emergency_override": decision.via_emergency_override,
            "audit_id": decision.audit_id,
            "issued_at": issued_at.isoformat(),
            "expires_at": (issued_at + self.ttl).isoformat(),
        }
        body = canonical_bytes(claims)
        return f"{_b64encode(body)}.{_b64encode(sign_message(self.private_key, body))}"

    def verify(self, token: str) -> Dict[str, Any]:
        """Return the claims of a valid, unexpired token or raise ``TokenInvalid``."""
        try:
            body_part, signature_part = token.split(".")
            body = _b64decode(body_part)
            verify_signature(self.public_key, body, _b64decode(signature_part))
            claims = json.loads(body)
            expires_at = datetime.fromisoformat(claims["expires_at"])
        except InvalidSignature as exc:
            raise TokenInvalid("signature mismatch") from exc
        except (ValueError, KeyError, TypeError) as exc:
            raise TokenInvalid("malformed token") from exc
        if as_utc(expires_at) <= as_utc(self.clock()):
            raise TokenInvalid("token expired")
        return claims

    def capabilities(self, token: str) -> CapabilitySet:
        return CapabilitySet.of(self.verify(token)["capabilities"])
