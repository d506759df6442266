"""Error taxonomy for the access engine."""


class CarePolicyError(Exception):
    """Base class for carepolicy errors."""


class InvalidRequest(CarePolicyError):
    """Malformed actor or patient identifiers; raised before any lookup."""


class ResolverUnavailable(CarePolicyError):
    """A resolver timed out or failed. Absorbed by the engine as a deny."""

    def __init__(self, resolver: str, cause: BaseException | None = None) -> None:
        self.resolver = resolver
        self.cause = cause
        super().__init__(f"{resolver} unavailable: {cause!r}" if cause else f"{resolver} unavailable")


class AuditSinkUnavailable(CarePolicyError):
    """The audit write could not be confirmed. Never absorbed."""


class TokenInvalid(CarePolicyError):
    """A capability token failed signature or expiry checks."""
